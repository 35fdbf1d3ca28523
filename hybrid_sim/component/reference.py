"""Shared bookkeeping for the pure-Python reference components."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .base import ComponentCallbacks, EventInfo, IComponent, Status


class Phase(str, Enum):
    INSTANTIATED = "instantiated"
    INITIALIZATION = "initialization"
    EVENT = "event"
    CONTINUOUS = "continuous"
    TERMINATED = "terminated"


REAL = "Real"
INTEGER = "Integer"
BOOLEAN = "Boolean"


@dataclass(slots=True)
class ModelInstance:
    """Per-instance data of a reference component."""

    name: str
    callbacks: ComponentCallbacks
    logging_on: bool
    values: dict[int, Any]
    phase: Phase = Phase.INSTANTIATED
    time: float = 0.0
    start_time: float = 0.0
    stop_time: float | None = None
    debug_categories: set[str] = field(default_factory=set)
    next_event_time: float | None = None
    terminate_requested: bool = False
    freed: bool = False


class ReferenceComponent(IComponent):
    """Base class implementing the mode checks common to every reference model.

    Subclasses describe their variables and supply the model equations through
    the ``_start_values``, ``_states``, ``_assign_states``, ``_derivatives``,
    ``_indicators`` and ``_event_update`` hooks.
    """

    GUID = ""
    VARIABLES: tuple[tuple[str, int, str], ...] = ()
    STATE_REFERENCES: tuple[int, ...] = ()
    NZ = 0
    LOG_CATEGORIES = ("logEvents", "logStatusWarning", "logStatusError", "logAll")

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        self._params = dict(params or {})
        self._types = {vr: var_type for _name, vr, var_type in self.VARIABLES}

    # hooks

    def _start_values(self) -> dict[int, Any]:
        raise NotImplementedError

    def _derivatives(self, instance: ModelInstance) -> list[float]:
        return []

    def _indicators(self, instance: ModelInstance) -> list[float]:
        return []

    def _event_update(self, instance: ModelInstance, event_info: EventInfo) -> None:
        return None

    def _step_completed(self, instance: ModelInstance) -> bool:
        return False

    # helpers

    def _log(self, instance: ModelInstance, status: Status, category: str, message: str) -> None:
        callback = instance.callbacks.logger
        if callback is None:
            return
        if status == Status.OK and not instance.logging_on:
            return
        if status == Status.OK and instance.debug_categories and category not in instance.debug_categories:
            return
        callback(instance.callbacks.environment, instance.name, status, category, message)

    def _require(self, instance: ModelInstance, operation: str, *phases: Phase) -> Status:
        if instance.freed:
            return Status.FATAL
        if instance.phase in phases:
            return Status.OK
        self._log(
            instance,
            Status.ERROR,
            "logStatusError",
            f"{operation}: illegal call sequence in phase {instance.phase.value}",
        )
        return Status.ERROR

    def _states(self, instance: ModelInstance) -> list[float]:
        return [float(instance.values[vr]) for vr in self.STATE_REFERENCES]

    def _assign_states(self, instance: ModelInstance, x: Sequence[float]) -> None:
        for vr, value in zip(self.STATE_REFERENCES, x, strict=True):
            instance.values[vr] = float(value)

    def _read(self, instance: ModelInstance, vr: int) -> Any:
        if vr == 0:
            return instance.time
        return instance.values[vr]

    # contract

    def instantiate(
        self,
        instance_name: str,
        guid: str,
        callbacks: ComponentCallbacks,
        visible: bool,
        logging_on: bool,
    ) -> ModelInstance | None:
        if guid != self.GUID:
            if callbacks.logger is not None:
                callbacks.logger(
                    callbacks.environment,
                    instance_name,
                    Status.ERROR,
                    "logStatusError",
                    f"wrong GUID {guid}, expected {self.GUID}",
                )
            return None
        return ModelInstance(
            name=instance_name,
            callbacks=callbacks,
            logging_on=logging_on,
            values=self._start_values(),
        )

    def number_of_continuous_states(self, handle: ModelInstance) -> int:
        return len(self.STATE_REFERENCES)

    def number_of_event_indicators(self, handle: ModelInstance) -> int:
        return self.NZ

    def set_debug_logging(
        self, handle: ModelInstance, logging_on: bool, categories: Sequence[str]
    ) -> Status:
        unknown = [category for category in categories if category not in self.LOG_CATEGORIES]
        if unknown:
            self._log(handle, Status.ERROR, "logStatusError", f"unknown log categories {unknown}")
            return Status.ERROR
        handle.logging_on = logging_on
        handle.debug_categories = set(categories)
        return Status.OK

    def setup_experiment(
        self,
        handle: ModelInstance,
        tolerance_defined: bool,
        tolerance: float,
        start_time: float,
        stop_time_defined: bool,
        stop_time: float,
    ) -> Status:
        status = self._require(handle, "setup_experiment", Phase.INSTANTIATED)
        if status.failed:
            return status
        handle.start_time = start_time
        handle.time = start_time
        handle.stop_time = stop_time if stop_time_defined else None
        return Status.OK

    def enter_initialization_mode(self, handle: ModelInstance) -> Status:
        status = self._require(handle, "enter_initialization_mode", Phase.INSTANTIATED)
        if status.failed:
            return status
        handle.phase = Phase.INITIALIZATION
        return Status.OK

    def exit_initialization_mode(self, handle: ModelInstance) -> Status:
        status = self._require(handle, "exit_initialization_mode", Phase.INITIALIZATION)
        if status.failed:
            return status
        handle.phase = Phase.EVENT
        return Status.OK

    def new_discrete_states(self, handle: ModelInstance, event_info: EventInfo) -> Status:
        status = self._require(handle, "new_discrete_states", Phase.EVENT)
        if status.failed:
            return status
        event_info.new_discrete_states_needed = False
        event_info.terminate_simulation = False
        event_info.nominals_of_continuous_states_changed = False
        event_info.values_of_continuous_states_changed = False
        self._event_update(handle, event_info)
        if event_info.terminate_simulation:
            handle.terminate_requested = True
        event_info.next_event_time_defined = handle.next_event_time is not None
        event_info.next_event_time = handle.next_event_time if handle.next_event_time is not None else 0.0
        return Status.OK

    def enter_event_mode(self, handle: ModelInstance) -> Status:
        status = self._require(handle, "enter_event_mode", Phase.CONTINUOUS, Phase.EVENT)
        if status.failed:
            return status
        handle.phase = Phase.EVENT
        self._log(handle, Status.OK, "logEvents", f"entering event mode at t={handle.time:.16g}")
        return Status.OK

    def enter_continuous_time_mode(self, handle: ModelInstance) -> Status:
        status = self._require(handle, "enter_continuous_time_mode", Phase.EVENT)
        if status.failed:
            return status
        handle.phase = Phase.CONTINUOUS
        return Status.OK

    def set_time(self, handle: ModelInstance, time: float) -> Status:
        status = self._require(handle, "set_time", Phase.CONTINUOUS, Phase.EVENT)
        if status.failed:
            return status
        handle.time = time
        return Status.OK

    def get_continuous_states(self, handle: ModelInstance, x: list[float]) -> Status:
        status = self._require(
            handle, "get_continuous_states", Phase.INITIALIZATION, Phase.EVENT, Phase.CONTINUOUS
        )
        if status.failed:
            return status
        x[:] = self._states(handle)
        return Status.OK

    def set_continuous_states(self, handle: ModelInstance, x: Sequence[float]) -> Status:
        status = self._require(handle, "set_continuous_states", Phase.CONTINUOUS)
        if status.failed:
            return status
        if len(x) != len(self.STATE_REFERENCES):
            self._log(handle, Status.ERROR, "logStatusError", "set_continuous_states: wrong length")
            return Status.ERROR
        self._assign_states(handle, x)
        return Status.OK

    def get_derivatives(self, handle: ModelInstance, xdot: list[float]) -> Status:
        status = self._require(
            handle, "get_derivatives", Phase.INITIALIZATION, Phase.EVENT, Phase.CONTINUOUS
        )
        if status.failed:
            return status
        xdot[:] = self._derivatives(handle)
        return Status.OK

    def get_event_indicators(self, handle: ModelInstance, z: list[float]) -> Status:
        status = self._require(
            handle, "get_event_indicators", Phase.INITIALIZATION, Phase.EVENT, Phase.CONTINUOUS
        )
        if status.failed:
            return status
        z[:] = self._indicators(handle)
        return Status.OK

    def completed_integrator_step(
        self, handle: ModelInstance, no_set_state_prior: bool
    ) -> tuple[Status, bool, bool]:
        status = self._require(handle, "completed_integrator_step", Phase.CONTINUOUS)
        if status.failed:
            return status, False, False
        enter_event_mode = self._step_completed(handle)
        return Status.OK, enter_event_mode, handle.terminate_requested

    def _get(self, handle: ModelInstance, value_references: Sequence[int], expected: str) -> tuple[Status, list]:
        if handle.freed:
            return Status.FATAL, []
        values = []
        for vr in value_references:
            if self._types.get(vr) != expected:
                self._log(handle, Status.ERROR, "logStatusError", f"variable {vr} is not of type {expected}")
                return Status.ERROR, []
            values.append(self._read(handle, vr))
        return Status.OK, values

    def get_real(self, handle: ModelInstance, value_references: Sequence[int]) -> tuple[Status, list[float]]:
        status, values = self._get(handle, value_references, REAL)
        return status, [float(value) for value in values]

    def get_integer(self, handle: ModelInstance, value_references: Sequence[int]) -> tuple[Status, list[int]]:
        status, values = self._get(handle, value_references, INTEGER)
        return status, [int(value) for value in values]

    def get_boolean(self, handle: ModelInstance, value_references: Sequence[int]) -> tuple[Status, list[bool]]:
        status, values = self._get(handle, value_references, BOOLEAN)
        return status, [bool(value) for value in values]

    def terminate(self, handle: ModelInstance) -> Status:
        status = self._require(handle, "terminate", Phase.EVENT, Phase.CONTINUOUS)
        if status.failed:
            return status
        handle.phase = Phase.TERMINATED
        return Status.OK

    def free_instance(self, handle: ModelInstance) -> None:
        handle.freed = True

    def model_variables(self) -> list[dict[str, Any]]:
        return [
            {"name": name, "value_reference": vr, "type": var_type}
            for name, vr, var_type in self.VARIABLES
        ]
