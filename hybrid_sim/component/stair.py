"""Stair reference model: a counter driven purely by time events."""

from __future__ import annotations

from typing import Any

from .base import EventInfo, Status
from .reference import BOOLEAN, INTEGER, REAL, ModelInstance, ReferenceComponent

V_TIME = 0
V_COUNTER = 1
V_DONE = 2


class Stair(ReferenceComponent):
    """Increment ``counter`` every ``period`` seconds and stop at ``max_count``."""

    GUID = "{BD403596-3166-4232-ABC2-132BDF73E644}"
    VARIABLES = (
        ("time", V_TIME, REAL),
        ("counter", V_COUNTER, INTEGER),
        ("done", V_DONE, BOOLEAN),
    )

    def _start_values(self) -> dict[int, Any]:
        return {
            V_COUNTER: int(self._params.get("start", 1)),
            V_DONE: False,
        }

    @property
    def period(self) -> float:
        return float(self._params.get("period", 1.0))

    @property
    def max_count(self) -> int:
        return int(self._params.get("max_count", 10))

    def _event_update(self, instance: ModelInstance, event_info: EventInfo) -> None:
        values = instance.values
        if instance.next_event_time is None:
            instance.next_event_time = instance.time + self.period
            return
        if instance.time < instance.next_event_time:
            return
        values[V_COUNTER] += 1
        self._log(instance, Status.OK, "logEvents", f"counter={values[V_COUNTER]} at t={instance.time:.16g}")
        if values[V_COUNTER] >= self.max_count:
            values[V_DONE] = True
            instance.next_event_time = None
            event_info.terminate_simulation = True
            return
        instance.next_event_time += self.period
