"""Runtime types shared by the lifecycle manager, step executor and driving modes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from hybrid_sim.component import ComponentCallbacks, EventInfo, IComponent, Status

from .spec import VariableSpec


class Mode(str, Enum):
    INSTANTIATED = "instantiated"
    INITIALIZATION = "initialization"
    CONTINUOUS_TIME = "continuous_time"
    EVENT = "event"
    TERMINATED = "terminated"


@dataclass(slots=True)
class OutputBuffer:
    """Latest sampled row plus one growable series per directory slot.

    Slot 0 is reserved: it carries the simulation time of each committed step.
    """

    names: tuple[str, ...]
    latest: list[float]
    series: list[list[float]]

    @classmethod
    def for_directory(cls, variables: Sequence[VariableSpec]) -> "OutputBuffer":
        names = tuple(variable.name for variable in variables) or ("time",)
        return cls(
            names=names,
            latest=[0.0] * len(names),
            series=[[] for _ in names],
        )

    def commit(self) -> None:
        for slot, value in enumerate(self.latest):
            self.series[slot].append(value)

    def as_dict(self, slots: Sequence[int] | None = None) -> dict[str, list[float]]:
        selected = range(len(self.names)) if slots is None else slots
        return {self.names[slot]: list(self.series[slot]) for slot in selected}


@dataclass(slots=True)
class SimulationState:
    """Everything one run owns: the component handle, buffers and counters."""

    component: IComponent
    handle: Any
    callbacks: ComponentCallbacks
    instance_name: str
    t_start: float
    t_end: float
    h: float
    variables: tuple[VariableSpec, ...]
    time: float = 0.0
    nx: int = 0
    nz: int = 0
    x: Optional[list[float]] = None
    xdot: Optional[list[float]] = None
    z: Optional[list[float]] = None
    prez: Optional[list[float]] = None
    event_info: EventInfo = field(default_factory=EventInfo)
    output: Optional[OutputBuffer] = None
    mode: Mode = Mode.INSTANTIATED
    step_count: int = 0
    time_event_count: int = 0
    state_event_count: int = 0
    step_event_count: int = 0
    terminated: bool = False
    failure_status: Optional[Status] = None
    buffers: list[list[float]] = field(default_factory=list)
    released: bool = False

    @property
    def has_more(self) -> bool:
        return self.time < self.t_end and not self.terminated

    def terminate_by_model(self) -> None:
        self.terminated = True
        self.event_info.terminate_simulation = True


@dataclass(slots=True)
class RunSummary:
    """User-visible result of a run."""

    instance_name: str
    start_time: float
    stop_time: float
    final_time: float
    step_size: float
    steps: int
    time_events: int
    state_events: int
    step_events: int
    terminated_by_model: bool
    series: dict[str, list[float]] = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: SimulationState, *, series: dict[str, list[float]] | None = None) -> "RunSummary":
        return cls(
            instance_name=state.instance_name,
            start_time=state.t_start,
            stop_time=state.t_end,
            final_time=state.time,
            step_size=state.h,
            steps=state.step_count,
            time_events=state.time_event_count,
            state_events=state.state_event_count,
            step_events=state.step_event_count,
            terminated_by_model=state.terminated,
            series=series or {},
        )

    def to_dict(self, *, include_series: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "instance_name": self.instance_name,
            "start_time": self.start_time,
            "stop_time": self.stop_time,
            "final_time": self.final_time,
            "step_size": self.step_size,
            "steps": self.steps,
            "time_events": self.time_events,
            "state_events": self.state_events,
            "step_events": self.step_events,
            "terminated_by_model": self.terminated_by_model,
        }
        if include_series:
            payload["series"] = {name: list(values) for name, values in self.series.items()}
        return payload

    def format_report(self) -> str:
        lines = [
            f"Simulation from {self.start_time:g} to {self.stop_time:g} terminated successfully",
            f"  steps ............ {self.steps}",
            f"  fixed step size .. {self.step_size:g}",
            f"  time events ...... {self.time_events}",
            f"  state events ..... {self.state_events}",
            f"  step events ...... {self.step_events}",
        ]
        if self.terminated_by_model:
            lines.append(f"  model requested termination at t={self.final_time:.16g}")
        return "\n".join(lines)
