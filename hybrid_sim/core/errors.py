"""Failure taxonomy of the driver.

Model-requested termination is not represented here: it is a successful
outcome reported through ``SimulationState.terminated``.
"""

from __future__ import annotations

from hybrid_sim.component import Status


class SimulationError(Exception):
    """Base class for driver failures."""


class AllocationFailure(SimulationError):
    """A working buffer could not be allocated."""

    def __init__(self, buffer_name: str, size: int) -> None:
        super().__init__(f"could not allocate {buffer_name}[{size}]")
        self.buffer_name = buffer_name
        self.size = size


class StatusFailure(SimulationError):
    """A component call returned a status above Warning."""

    def __init__(self, status: Status, operation: str) -> None:
        status = Status(status)
        super().__init__(f"{operation} failed with status {status.name}")
        self.status = status
        self.operation = operation


class InstantiationFailure(StatusFailure):
    """The component returned no handle."""

    def __init__(self, instance_name: str) -> None:
        super().__init__(Status.FATAL, "instantiate")
        self.instance_name = instance_name


class LifecycleStatusFailure(StatusFailure):
    """Instantiation, initialization, settling or teardown failed."""


class StepStatusFailure(StatusFailure):
    """A call inside one integration step failed."""
