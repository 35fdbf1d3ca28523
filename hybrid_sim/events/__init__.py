"""Simulation trace events published by the driver."""

from .bus import EventBus, EventHandler
from .types import EventType, SimEvent

__all__ = ["EventBus", "EventHandler", "EventType", "SimEvent"]
