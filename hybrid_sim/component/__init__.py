"""Component contract and reference implementations."""

from .base import (
    ComponentCallbacks,
    ComponentHandle,
    EventInfo,
    IComponent,
    LogCallback,
    Status,
)
from .bouncing_ball import BouncingBall
from .dahlquist import Dahlquist
from .reference import ModelInstance, ReferenceComponent
from .registry import available_components, create_component, register_component
from .stair import Stair

__all__ = [
    "BouncingBall",
    "ComponentCallbacks",
    "ComponentHandle",
    "Dahlquist",
    "EventInfo",
    "IComponent",
    "LogCallback",
    "ModelInstance",
    "ReferenceComponent",
    "Stair",
    "Status",
    "available_components",
    "create_component",
    "register_component",
]
