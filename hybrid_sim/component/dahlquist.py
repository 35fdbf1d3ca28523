"""Dahlquist test equation ``x' = -k x``."""

from __future__ import annotations

from typing import Any

from .reference import REAL, ModelInstance, ReferenceComponent

V_TIME = 0
V_X = 1
V_DER_X = 2
V_K = 3


class Dahlquist(ReferenceComponent):
    GUID = "{221063D2-EF4A-45FE-B954-B5BFEEA9A59B}"
    VARIABLES = (
        ("time", V_TIME, REAL),
        ("x", V_X, REAL),
        ("der(x)", V_DER_X, REAL),
        ("k", V_K, REAL),
    )
    STATE_REFERENCES = (V_X,)

    def _start_values(self) -> dict[int, Any]:
        return {
            V_X: float(self._params.get("x0", 1.0)),
            V_K: float(self._params.get("k", 1.0)),
            V_DER_X: 0.0,
        }

    def _read(self, instance: ModelInstance, vr: int) -> Any:
        if vr == V_DER_X:
            return self._derivatives(instance)[0]
        return super()._read(instance, vr)

    def _derivatives(self, instance: ModelInstance) -> list[float]:
        return [-instance.values[V_K] * instance.values[V_X]]
