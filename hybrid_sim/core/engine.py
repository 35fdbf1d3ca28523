"""Fixed-step Model Exchange simulation engine."""

from __future__ import annotations

import logging
from typing import Callable

from hybrid_sim.component import ComponentCallbacks, IComponent, Status, create_component
from hybrid_sim.events import EventBus, EventType, SimEvent
from hybrid_sim.metrics import IMetric, RunMetrics
from hybrid_sim.model import RunSummary, SimulationSpec, SimulationState, VariableSpec

from .errors import SimulationError
from .interfaces import ISimEngine
from .lifecycle import LifecycleManager, release
from .recorder import OutputRecorder
from .stepper import TIME_EPSILON, StepExecutor


logger = logging.getLogger(__name__)


class SimEngine(ISimEngine):
    """Drive one component instance with the fixed-step Euler executor."""

    DEFAULT_EVENT_ID_MODE = "deterministic"
    VALID_EVENT_ID_MODES = {"deterministic", "random", "seeded_random"}

    def __init__(
        self,
        component: IComponent | None = None,
        *,
        callbacks: ComponentCallbacks | None = None,
        metrics: list[IMetric] | None = None,
        event_id_mode: str = DEFAULT_EVENT_ID_MODE,
        event_id_seed: int | None = None,
    ) -> None:
        if event_id_mode not in self.VALID_EVENT_ID_MODES:
            raise ValueError(
                f"invalid event_id_mode '{event_id_mode}', expected one of "
                + "|".join(sorted(self.VALID_EVENT_ID_MODES))
            )
        self._external_component = component
        self._callbacks = callbacks
        self._metrics = metrics or [RunMetrics()]
        self._subscribers: list[Callable[[SimEvent], None]] = []
        self._event_id_mode = event_id_mode
        self._event_id_seed = event_id_seed

        self._event_bus = self._create_event_bus()
        self._events: list[SimEvent] = []
        self._setup_event_pipeline()

        self._spec: SimulationSpec | None = None
        self._state: SimulationState | None = None
        self._recorder: OutputRecorder | None = None
        self._executor: StepExecutor | None = None

    def subscribe(self, handler: Callable[[SimEvent], None]) -> None:
        if handler in self._subscribers:
            return
        self._subscribers.append(handler)
        self._event_bus.subscribe(handler)

    def build(self, spec: SimulationSpec) -> None:
        self.reset()
        self._spec = spec
        component = self._external_component or create_component(
            spec.component.name,
            spec.component.params,
        )
        variables = list(spec.variables) or [
            VariableSpec.model_validate(row) for row in component.model_variables()
        ]
        lifecycle = LifecycleManager(
            component,
            instance_name=spec.component.instance_name,
            guid=spec.component.guid,
            callbacks=self._callbacks,
            visible=spec.component.visible,
            logging_on=spec.logging.enabled,
            debug_categories=spec.logging.categories,
            tolerance=spec.experiment.tolerance,
            bus=self._event_bus,
        )
        self._state = lifecycle.start(
            spec.experiment.start_time,
            spec.experiment.stop_time,
            spec.experiment.step_size,
            variables,
        )
        self._recorder = OutputRecorder(variables)
        self._executor = StepExecutor(self._state, self._recorder, bus=self._event_bus)
        logger.debug(
            "built %s: nx=%d nz=%d variables=%d",
            self._state.instance_name,
            self._state.nx,
            self._state.nz,
            len(variables),
        )

    def step(self) -> Status:
        if self._executor is None:
            raise RuntimeError("build() must be called before step()")
        return self._executor.step()

    def run(self, until: float | None = None) -> RunSummary:
        """Step until ``until`` (default: the stop time).

        Resources are released once the run is finished or a step fails; a
        run paused early by ``until`` keeps them for further stepping.
        """
        if self._executor is None or self._state is None:
            raise RuntimeError("build() must be called before run()")
        state = self._state
        horizon = state.t_end if until is None else min(until, state.t_end)

        try:
            while state.has_more and state.time < horizon - TIME_EPSILON:
                if self.step() == Status.DISCARD:
                    break
        except SimulationError:
            self.close()
            raise

        summary = self.summary()
        if not state.has_more:
            self.publish_completed()
            self.close()
        return summary

    def close(self) -> None:
        if self._state is not None:
            release(self._state)

    def reset(self) -> None:
        self.close()
        for metric in self._metrics:
            metric.reset()
        self._event_bus = self._create_event_bus()
        self._events = []
        self._setup_event_pipeline()
        self._spec = None
        self._state = None
        self._recorder = None
        self._executor = None

    def summary(self) -> RunSummary:
        if self._state is None or self._recorder is None:
            raise RuntimeError("build() must be called before summary()")
        return RunSummary.from_state(
            self._state,
            series=self._state.output.as_dict(self._recorder.recorded_slots),
        )

    def output_tuple(self) -> tuple[float, ...]:
        """``(step_index, latest value of every non-reserved slot...)``."""
        if self._state is None:
            raise RuntimeError("build() must be called before output_tuple()")
        return (float(self._state.step_count), *self._state.output.latest[1:])

    def _setup_event_pipeline(self) -> None:
        self._event_bus.subscribe(self._events.append)
        for metric in self._metrics:
            self._event_bus.subscribe(metric.consume, types=metric.event_types)
        for handler in self._subscribers:
            self._event_bus.subscribe(handler)

    def _create_event_bus(self) -> EventBus:
        return EventBus(
            event_id_mode=self._event_id_mode,
            event_id_seed=self._event_id_seed,
        )

    def publish_completed(self) -> None:
        state = self._state
        if state is None or state.released:
            return
        self._event_bus.publish(
            event_type=EventType.COMPLETED,
            time=state.time,
            correlation_id=state.instance_name,
            step=state.step_count,
            payload={"terminated_by_model": state.terminated},
        )

    @property
    def events(self) -> list[SimEvent]:
        return list(self._events)

    @property
    def now(self) -> float:
        return self._state.time if self._state is not None else 0.0

    @property
    def state(self) -> SimulationState | None:
        return self._state

    @property
    def spec(self) -> SimulationSpec | None:
        return self._spec

    @property
    def finished(self) -> bool:
        return self._state is None or not self._state.has_more

    def metric_report(self) -> dict:
        merged: dict = {}
        for metric in self._metrics:
            merged.update(metric.report())
        return merged
