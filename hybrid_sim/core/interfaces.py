"""Simulation engine interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from hybrid_sim.component import Status
from hybrid_sim.events import SimEvent
from hybrid_sim.model import RunSummary, SimulationSpec


class ISimEngine(ABC):
    """Simulation engine contract."""

    @abstractmethod
    def build(self, spec: SimulationSpec) -> None:
        """Instantiate and initialize the component described by ``spec``."""

    @abstractmethod
    def step(self) -> Status:
        """Run one fixed step; ``Status.DISCARD`` when already finished."""

    @abstractmethod
    def run(self, until: float | None = None) -> RunSummary:
        """Step until the horizon (or ``until``) is reached or the model terminates."""

    @abstractmethod
    def close(self) -> None:
        """Release the component instance and all working buffers."""

    @abstractmethod
    def subscribe(self, handler: Callable[[SimEvent], None]) -> None:
        """Subscribe event handler."""
