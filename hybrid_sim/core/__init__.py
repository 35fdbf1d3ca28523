"""Simulation core exports."""

from .engine import SimEngine
from .errors import (
    AllocationFailure,
    InstantiationFailure,
    LifecycleStatusFailure,
    SimulationError,
    StatusFailure,
    StepStatusFailure,
)
from .interfaces import ISimEngine
from .lifecycle import LifecycleManager, log_component_message, release, settle_discrete_states
from .modes import DONE, BatchRunner, Done, IncrementalStepper, StepValue, simulate
from .recorder import OutputRecorder
from .stepper import TIME_EPSILON, StepExecutor, euler_step, next_step_time, zero_crossings

__all__ = [
    "AllocationFailure",
    "BatchRunner",
    "DONE",
    "Done",
    "ISimEngine",
    "IncrementalStepper",
    "InstantiationFailure",
    "LifecycleManager",
    "LifecycleStatusFailure",
    "OutputRecorder",
    "SimEngine",
    "SimulationError",
    "StatusFailure",
    "StepExecutor",
    "StepStatusFailure",
    "StepValue",
    "TIME_EPSILON",
    "euler_step",
    "log_component_message",
    "next_step_time",
    "release",
    "settle_discrete_states",
    "simulate",
    "zero_crossings",
]
