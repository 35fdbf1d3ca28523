"""Model Exchange component contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Optional


class Status(IntEnum):
    """Component call status, ordered by severity."""

    OK = 0
    WARNING = 1
    DISCARD = 2
    ERROR = 3
    FATAL = 4
    PENDING = 5

    @property
    def failed(self) -> bool:
        return self > Status.WARNING


@dataclass(slots=True)
class EventInfo:
    """Event bookkeeping updated by initialization and discrete-state updates."""

    new_discrete_states_needed: bool = False
    terminate_simulation: bool = False
    nominals_of_continuous_states_changed: bool = False
    values_of_continuous_states_changed: bool = False
    next_event_time_defined: bool = False
    next_event_time: float = 0.0


LogCallback = Callable[[Any, str, Status, str, str], None]
Allocator = Callable[[int], list[float]]
Deallocator = Callable[[list[float]], None]


def _default_allocate(size: int) -> list[float]:
    return [0.0] * size


def _default_free(_buffer: list[float]) -> None:
    return None


@dataclass(slots=True)
class ComponentCallbacks:
    """Callbacks handed to the component at instantiation."""

    logger: Optional[LogCallback] = None
    allocate: Allocator = field(default=_default_allocate)
    free: Deallocator = field(default=_default_free)
    step_finished: Optional[Callable[[Any, Status], None]] = None
    environment: Any = None


ComponentHandle = Any


class IComponent(ABC):
    """Capability set of a bound Model Exchange component.

    Every operation after ``instantiate`` takes the handle returned by it;
    the component keeps no state of its own between instances.
    """

    GUID: str = ""

    @abstractmethod
    def instantiate(
        self,
        instance_name: str,
        guid: str,
        callbacks: ComponentCallbacks,
        visible: bool,
        logging_on: bool,
    ) -> ComponentHandle | None:
        """Create one instance, or return None on failure."""

    @abstractmethod
    def number_of_continuous_states(self, handle: ComponentHandle) -> int:
        """Length of the continuous state vector."""

    @abstractmethod
    def number_of_event_indicators(self, handle: ComponentHandle) -> int:
        """Length of the event indicator vector."""

    @abstractmethod
    def set_debug_logging(
        self, handle: ComponentHandle, logging_on: bool, categories: Sequence[str]
    ) -> Status:
        """Enable or disable debug logging for the given categories."""

    @abstractmethod
    def setup_experiment(
        self,
        handle: ComponentHandle,
        tolerance_defined: bool,
        tolerance: float,
        start_time: float,
        stop_time_defined: bool,
        stop_time: float,
    ) -> Status:
        """Configure the experiment before initialization."""

    @abstractmethod
    def enter_initialization_mode(self, handle: ComponentHandle) -> Status:
        ...

    @abstractmethod
    def exit_initialization_mode(self, handle: ComponentHandle) -> Status:
        ...

    @abstractmethod
    def new_discrete_states(self, handle: ComponentHandle, event_info: EventInfo) -> Status:
        """Advance the discrete state once, updating ``event_info`` in place."""

    @abstractmethod
    def enter_event_mode(self, handle: ComponentHandle) -> Status:
        ...

    @abstractmethod
    def enter_continuous_time_mode(self, handle: ComponentHandle) -> Status:
        ...

    @abstractmethod
    def set_time(self, handle: ComponentHandle, time: float) -> Status:
        ...

    @abstractmethod
    def get_continuous_states(self, handle: ComponentHandle, x: list[float]) -> Status:
        """Fill ``x`` with the current continuous states."""

    @abstractmethod
    def set_continuous_states(self, handle: ComponentHandle, x: Sequence[float]) -> Status:
        ...

    @abstractmethod
    def get_derivatives(self, handle: ComponentHandle, xdot: list[float]) -> Status:
        """Fill ``xdot`` with the state derivatives."""

    @abstractmethod
    def get_event_indicators(self, handle: ComponentHandle, z: list[float]) -> Status:
        """Fill ``z`` with the event indicators."""

    @abstractmethod
    def completed_integrator_step(
        self, handle: ComponentHandle, no_set_state_prior: bool
    ) -> tuple[Status, bool, bool]:
        """Return ``(status, enter_event_mode, terminate_simulation)``."""

    @abstractmethod
    def get_real(
        self, handle: ComponentHandle, value_references: Sequence[int]
    ) -> tuple[Status, list[float]]:
        ...

    @abstractmethod
    def get_integer(
        self, handle: ComponentHandle, value_references: Sequence[int]
    ) -> tuple[Status, list[int]]:
        ...

    @abstractmethod
    def get_boolean(
        self, handle: ComponentHandle, value_references: Sequence[int]
    ) -> tuple[Status, list[bool]]:
        ...

    @abstractmethod
    def terminate(self, handle: ComponentHandle) -> Status:
        ...

    @abstractmethod
    def free_instance(self, handle: ComponentHandle) -> None:
        """Release the instance. Must be called exactly once per handle."""

    def model_variables(self) -> list[dict[str, Any]]:
        """Default variable catalog as ``{name, value_reference, type}`` rows."""
        return []
