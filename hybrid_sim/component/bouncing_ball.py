"""Bouncing ball reference model."""

from __future__ import annotations

import sys
from typing import Any

from .base import EventInfo, Status
from .reference import REAL, ModelInstance, ReferenceComponent

V_TIME = 0
V_H = 1
V_DER_H = 2
V_V = 3
V_DER_V = 4
V_G = 5
V_E = 6
V_V_MIN = 7


class BouncingBall(ReferenceComponent):
    """Ball dropped from height ``h0``; the event indicator is the height.

    A bounce is handled when the ball is at or below the ground while
    falling: velocity is reversed and scaled by the restitution ``e``. Below
    ``v_min`` the ball comes to rest.
    """

    GUID = "{1AE5E10D-9521-4DE3-80B9-D0EAAA7D5AF1}"
    VARIABLES = (
        ("time", V_TIME, REAL),
        ("h", V_H, REAL),
        ("der(h)", V_DER_H, REAL),
        ("v", V_V, REAL),
        ("der(v)", V_DER_V, REAL),
        ("g", V_G, REAL),
        ("e", V_E, REAL),
    )
    STATE_REFERENCES = (V_H, V_V)
    NZ = 1

    def _start_values(self) -> dict[int, Any]:
        return {
            V_H: float(self._params.get("h0", 1.0)),
            V_V: float(self._params.get("v0", 0.0)),
            V_G: float(self._params.get("g", -9.81)),
            V_E: float(self._params.get("e", 0.7)),
            V_V_MIN: float(self._params.get("v_min", 0.1)),
            V_DER_H: 0.0,
            V_DER_V: 0.0,
        }

    def _read(self, instance: ModelInstance, vr: int) -> Any:
        if vr == V_DER_H:
            return instance.values[V_V]
        if vr == V_DER_V:
            return instance.values[V_G]
        return super()._read(instance, vr)

    def _derivatives(self, instance: ModelInstance) -> list[float]:
        return [instance.values[V_V], instance.values[V_G]]

    def _indicators(self, instance: ModelInstance) -> list[float]:
        h = instance.values[V_H]
        v = instance.values[V_V]
        # resting ball must not keep crossing zero
        if h == 0 and v == 0:
            return [1.0]
        return [h]

    def _event_update(self, instance: ModelInstance, event_info: EventInfo) -> None:
        values = instance.values
        if values[V_H] <= 0 and values[V_V] < 0:
            values[V_H] = sys.float_info.min
            values[V_V] = -values[V_E] * values[V_V]
            if values[V_V] < values[V_V_MIN]:
                values[V_V] = 0.0
                values[V_G] = 0.0
            event_info.values_of_continuous_states_changed = True
            self._log(instance, Status.OK, "logEvents", f"bounce at t={instance.time:.16g}")
