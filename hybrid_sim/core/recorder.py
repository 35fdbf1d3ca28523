"""Sampling of the variable directory after each committed step."""

from __future__ import annotations

from collections.abc import Sequence

from hybrid_sim.component import Status
from hybrid_sim.model import SimulationState, VariableSpec, VariableType

from .errors import StatusFailure, StepStatusFailure


class OutputRecorder:
    """Read every directory entry but the reserved leading one, by declared type."""

    def __init__(self, variables: Sequence[VariableSpec]) -> None:
        self._variables = tuple(variables)

    @property
    def recorded_slots(self) -> list[int]:
        """Slots holding data: 0 (time) plus every entry of a supported type."""
        slots = [0]
        for position, variable in enumerate(self._variables):
            if position > 0 and variable.type != VariableType.STRING:
                slots.append(position)
        return slots

    def sample(
        self,
        state: SimulationState,
        *,
        commit: bool = False,
        failure: type[StatusFailure] = StepStatusFailure,
    ) -> list[float]:
        """Refresh ``state.output.latest``; with ``commit`` also append it to the series."""
        output = state.output
        component = state.component
        handle = state.handle
        row = output.latest
        row[0] = state.time

        for position, variable in enumerate(self._variables):
            if position == 0:
                continue
            refs = [variable.value_reference]
            if variable.type == VariableType.REAL:
                status, values = component.get_real(handle, refs)
                operation = "get_real"
            elif variable.type == VariableType.INTEGER:
                status, values = component.get_integer(handle, refs)
                operation = "get_integer"
            elif variable.type == VariableType.BOOLEAN:
                status, values = component.get_boolean(handle, refs)
                operation = "get_boolean"
            else:
                continue
            if Status(status).failed:
                raise failure(status, f"{operation}({variable.name})")
            row[position] = float(values[0])

        if commit:
            output.commit()
        return row
