"""Model package exports."""

from .runtime import Mode, OutputBuffer, RunSummary, SimulationState
from .spec import (
    ComponentSpec,
    ExperimentSpec,
    LoggingSpec,
    RunMode,
    SimulationSpec,
    VariableSpec,
    VariableType,
)

__all__ = [
    "ComponentSpec",
    "ExperimentSpec",
    "LoggingSpec",
    "Mode",
    "OutputBuffer",
    "RunMode",
    "RunSummary",
    "SimulationSpec",
    "SimulationState",
    "VariableSpec",
    "VariableType",
]
