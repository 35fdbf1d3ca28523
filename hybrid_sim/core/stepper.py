"""Fixed-step forward Euler advance with time, state and step event handling."""

from __future__ import annotations

from collections.abc import Sequence
import logging

from hybrid_sim.component import EventInfo, Status
from hybrid_sim.events import EventBus, EventType
from hybrid_sim.model import Mode, SimulationState

from .errors import StepStatusFailure
from .lifecycle import check_status, settle_discrete_states
from .recorder import OutputRecorder


logger = logging.getLogger(__name__)

TIME_EPSILON = 1e-12


def euler_step(x: list[float], xdot: Sequence[float], dt: float) -> None:
    """Advance ``x`` in place by one explicit Euler step of length ``dt``."""
    for i, derivative in enumerate(xdot):
        x[i] += dt * derivative


def next_step_time(time: float, h: float, t_end: float, event_info: EventInfo) -> tuple[float, bool]:
    """Return ``(t_next, time_event)`` for a step starting at ``time``.

    A scheduled event time that would be reached or overshot replaces the
    grid point exactly. A grid point within ``TIME_EPSILON`` of ``t_end`` is
    snapped onto it so accumulated rounding never leaves a sliver step.
    """
    t_next = min(time + h, t_end)
    if t_end - t_next <= TIME_EPSILON:
        t_next = t_end
    time_event = event_info.next_event_time_defined and t_next >= event_info.next_event_time
    if time_event:
        t_next = max(event_info.next_event_time, time)
    return t_next, time_event


def zero_crossings(previous: Sequence[float], current: Sequence[float]) -> list[int]:
    """Indexes of indicators whose sign flipped strictly between two samples.

    A value of exactly zero is not a crossing on its own.
    """
    return [i for i, (before, after) in enumerate(zip(previous, current)) if before * after < 0]


class StepExecutor:
    """Advance a simulation state by at most one fixed step per call."""

    def __init__(
        self,
        state: SimulationState,
        recorder: OutputRecorder,
        *,
        bus: EventBus | None = None,
    ) -> None:
        self._state = state
        self._recorder = recorder
        self._bus = bus

    @property
    def state(self) -> SimulationState:
        return self._state

    def step(self) -> Status:
        """Run one step.

        Returns ``Status.DISCARD`` when there is nothing left to do and
        ``Status.OK`` otherwise, including when the model requests
        termination. Raises ``StepStatusFailure`` when a component call fails;
        the state is left non-terminated and a later call retries the step.
        """
        state = self._state
        if state.released:
            return Status.DISCARD
        if state.mode != Mode.CONTINUOUS_TIME or not state.has_more:
            return Status.DISCARD
        try:
            status = self._advance(state)
        except StepStatusFailure as exc:
            state.failure_status = exc.status
            logger.error("step %d failed at t=%.16g: %s", state.step_count, state.time, exc)
            self._publish(EventType.ERROR, payload={"operation": exc.operation, "status": exc.status.name})
            raise
        state.failure_status = None
        return status

    def _advance(self, state: SimulationState) -> Status:
        component = state.component
        handle = state.handle

        # derivatives belong to the pre-advance state
        self._call(component.get_continuous_states(handle, state.x), "get_continuous_states")
        self._call(component.get_derivatives(handle, state.xdot), "get_derivatives")

        t_next, time_event = next_step_time(state.time, state.h, state.t_end, state.event_info)
        dt = t_next - state.time
        self._call(component.set_time(handle, t_next), "set_time")
        euler_step(state.x, state.xdot, dt)
        self._call(component.set_continuous_states(handle, state.x), "set_continuous_states")
        state.time = t_next

        crossings = self._detect_state_events(state)

        status, step_event, terminate = component.completed_integrator_step(handle, True)
        self._call(status, "completed_integrator_step")
        if terminate:
            self._terminate(state, "completed_integrator_step")
            return Status.OK

        if time_event or crossings or step_event:
            if self._handle_events(state, time_event, crossings, step_event):
                return Status.OK

        self._recorder.sample(state, commit=True)
        state.step_count += 1
        return Status.OK

    def _detect_state_events(self, state: SimulationState) -> list[int]:
        if state.nz == 0:
            return []
        # the baseline keeps the last non-zero sample of each indicator
        for i, value in enumerate(state.z):
            if value != 0.0:
                state.prez[i] = value
        self._call(state.component.get_event_indicators(state.handle, state.z), "get_event_indicators")
        return zero_crossings(state.prez, state.z)

    def _handle_events(
        self,
        state: SimulationState,
        time_event: bool,
        crossings: list[int],
        step_event: bool,
    ) -> bool:
        component = state.component
        handle = state.handle
        self._call(component.enter_event_mode(handle), "enter_event_mode")
        state.mode = Mode.EVENT

        if time_event:
            state.time_event_count += 1
            logger.debug("time event at t=%.16g", state.time)
            self._publish(EventType.TIME_EVENT)
        if crossings:
            state.state_event_count += 1
            directions = [
                "falling" if state.prez[i] > 0 else "rising"
                for i in crossings
            ]
            logger.debug("state event at t=%.16g, indicators=%s", state.time, crossings)
            self._publish(EventType.STATE_EVENT, payload={"indicators": crossings, "directions": directions})
        if step_event:
            state.step_event_count += 1
            logger.debug("step event at t=%.16g", state.time)
            self._publish(EventType.STEP_EVENT)

        if settle_discrete_states(state, failure=StepStatusFailure):
            self._terminate(state, "new_discrete_states")
            return True

        self._call(component.enter_continuous_time_mode(handle), "enter_continuous_time_mode")
        state.mode = Mode.CONTINUOUS_TIME
        if state.nz > 0:
            # discrete updates may move indicators; restart detection from here
            self._call(component.get_event_indicators(handle, state.z), "get_event_indicators")
            state.prez[:] = state.z
        return False

    def _terminate(self, state: SimulationState, source: str) -> None:
        state.terminate_by_model()
        logger.info("model requested termination at t=%.16g", state.time)
        self._publish(EventType.TERMINATE_REQUESTED, payload={"source": source})

    @staticmethod
    def _call(status: Status, operation: str) -> None:
        check_status(status, operation, StepStatusFailure)

    def _publish(self, event_type: EventType, *, payload: dict | None = None) -> None:
        if self._bus is None:
            return
        self._bus.publish(
            event_type=event_type,
            time=self._state.time,
            correlation_id=self._state.instance_name,
            step=self._state.step_count,
            payload=payload,
        )
