"""Instantiation, initialization and teardown of one component instance."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Any

from hybrid_sim.component import ComponentCallbacks, IComponent, Status
from hybrid_sim.events import EventBus, EventType
from hybrid_sim.model import Mode, OutputBuffer, SimulationState, VariableSpec

from .errors import (
    AllocationFailure,
    InstantiationFailure,
    LifecycleStatusFailure,
    SimulationError,
    StatusFailure,
)
from .recorder import OutputRecorder


logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Status.OK: logging.DEBUG,
    Status.WARNING: logging.WARNING,
    Status.DISCARD: logging.INFO,
    Status.ERROR: logging.ERROR,
    Status.FATAL: logging.CRITICAL,
    Status.PENDING: logging.INFO,
}

component_log = logging.getLogger("hybrid_sim.component")


def log_component_message(
    environment: Any, instance_name: str, status: Status, category: str, message: str
) -> None:
    """Default logger callback handed to components."""
    component_log.log(
        _LOG_LEVELS.get(Status(status), logging.INFO),
        "%s %s (%s): %s",
        Status(status).name,
        instance_name or "?",
        category or "?",
        message,
    )


def check_status(status: Status, operation: str, failure: type[StatusFailure]) -> Status:
    status = Status(status)
    if status.failed:
        raise failure(status, operation)
    if status == Status.WARNING:
        logger.warning("%s returned Warning", operation)
    return status


def settle_discrete_states(
    state: SimulationState,
    *,
    failure: type[StatusFailure] = LifecycleStatusFailure,
) -> bool:
    """Iterate ``new_discrete_states`` to a fixed point.

    Returns True when the component requested termination while settling.
    """
    info = state.event_info
    info.new_discrete_states_needed = True
    info.terminate_simulation = False
    while info.new_discrete_states_needed and not info.terminate_simulation:
        check_status(
            state.component.new_discrete_states(state.handle, info),
            "new_discrete_states",
            failure,
        )
        if info.values_of_continuous_states_changed:
            logger.debug("continuous state values changed at t=%.16g", state.time)
        if info.nominals_of_continuous_states_changed:
            logger.debug("nominals of continuous states changed at t=%.16g", state.time)
    return info.terminate_simulation


def release(state: SimulationState) -> None:
    """Tear the instance down. Safe to call more than once; only the first call acts."""
    if state.released:
        return
    state.released = True
    terminate_status = Status.OK
    try:
        # after Error or Fatal the instance may only be freed
        if state.failure_status is None and state.mode in (Mode.EVENT, Mode.CONTINUOUS_TIME):
            terminate_status = Status(state.component.terminate(state.handle))
    finally:
        state.component.free_instance(state.handle)
        state.handle = None
        for buffer in state.buffers:
            state.callbacks.free(buffer)
        state.buffers.clear()
        state.mode = Mode.TERMINATED
        logger.debug("released instance %s", state.instance_name)
    if terminate_status.failed:
        raise LifecycleStatusFailure(terminate_status, "terminate")


class LifecycleManager:
    """Bring a component from instantiation into continuous-time mode."""

    def __init__(
        self,
        component: IComponent,
        *,
        instance_name: str = "instance",
        guid: str | None = None,
        callbacks: ComponentCallbacks | None = None,
        visible: bool = False,
        logging_on: bool = False,
        debug_categories: Sequence[str] = (),
        tolerance: float | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._component = component
        self._instance_name = instance_name
        self._guid = guid if guid is not None else component.GUID
        self._callbacks = callbacks or ComponentCallbacks(logger=log_component_message)
        if self._callbacks.logger is None:
            self._callbacks.logger = log_component_message
        self._visible = visible
        self._logging_on = logging_on
        self._debug_categories = list(debug_categories)
        self._tolerance = tolerance
        self._bus = bus

    def start(
        self,
        t_start: float,
        t_end: float,
        h: float,
        variables: Sequence[VariableSpec],
    ) -> SimulationState:
        """Run the whole startup sequence.

        The returned state is either in continuous-time mode or already
        terminated by the model. On failure everything acquired so far is
        released before the exception propagates.
        """
        if h <= 0:
            raise ValueError("step size must be > 0")
        if t_end <= t_start:
            raise ValueError("stop time must be greater than start time")

        handle = self._component.instantiate(
            self._instance_name,
            self._guid,
            self._callbacks,
            self._visible,
            self._logging_on,
        )
        if handle is None:
            logger.error("could not instantiate %s", self._instance_name)
            raise InstantiationFailure(self._instance_name)

        state = SimulationState(
            component=self._component,
            handle=handle,
            callbacks=self._callbacks,
            instance_name=self._instance_name,
            t_start=t_start,
            t_end=t_end,
            h=h,
            variables=tuple(variables),
            time=t_start,
        )
        self._publish(EventType.INSTANTIATED, state)
        try:
            self._initialize(state)
        except SimulationError as exc:
            logger.error("could not initialize %s: %s", self._instance_name, exc)
            if isinstance(exc, StatusFailure):
                state.failure_status = exc.status
            self._publish(EventType.ERROR, state, payload={"reason": str(exc)})
            release(state)
            raise
        return state

    def _initialize(self, state: SimulationState) -> None:
        component = self._component
        handle = state.handle

        if self._debug_categories:
            check_status(
                component.set_debug_logging(handle, True, self._debug_categories),
                "set_debug_logging",
                LifecycleStatusFailure,
            )

        state.nx = component.number_of_continuous_states(handle)
        state.nz = component.number_of_event_indicators(handle)
        state.x = self._allocate(state, "x", state.nx)
        state.xdot = self._allocate(state, "xdot", state.nx)
        if state.nz > 0:
            state.z = self._allocate(state, "z", state.nz)
            state.prez = self._allocate(state, "prez", state.nz)
        state.output = OutputBuffer.for_directory(state.variables)

        check_status(
            component.setup_experiment(
                handle,
                self._tolerance is not None,
                self._tolerance or 0.0,
                state.t_start,
                True,
                state.t_end,
            ),
            "setup_experiment",
            LifecycleStatusFailure,
        )
        check_status(component.enter_initialization_mode(handle), "enter_initialization_mode", LifecycleStatusFailure)
        state.mode = Mode.INITIALIZATION
        check_status(component.exit_initialization_mode(handle), "exit_initialization_mode", LifecycleStatusFailure)
        state.mode = Mode.EVENT

        if settle_discrete_states(state):
            state.terminate_by_model()
            logger.info("model requested termination at t=%.16g", state.time)
            self._publish(EventType.TERMINATE_REQUESTED, state, payload={"phase": "initialization"})
            return

        check_status(component.enter_continuous_time_mode(handle), "enter_continuous_time_mode", LifecycleStatusFailure)
        state.mode = Mode.CONTINUOUS_TIME
        if state.nz > 0:
            check_status(component.get_event_indicators(handle, state.z), "get_event_indicators", LifecycleStatusFailure)
            state.prez[:] = state.z
        OutputRecorder(state.variables).sample(state, failure=LifecycleStatusFailure)
        self._publish(
            EventType.INITIALIZED,
            state,
            payload={"nx": state.nx, "nz": state.nz, "variables": len(state.variables)},
        )

    def _allocate(self, state: SimulationState, name: str, size: int) -> list[float]:
        try:
            buffer = self._callbacks.allocate(size)
        except MemoryError as exc:
            raise AllocationFailure(name, size) from exc
        if buffer is None or len(buffer) != size:
            raise AllocationFailure(name, size)
        state.buffers.append(buffer)
        return buffer

    def _publish(self, event_type: EventType, state: SimulationState, *, payload: dict | None = None) -> None:
        if self._bus is None:
            return
        self._bus.publish(
            event_type=event_type,
            time=state.time,
            correlation_id=state.instance_name,
            step=state.step_count,
            payload=payload,
        )
