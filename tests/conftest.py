from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from hybrid_sim.component import ComponentCallbacks, IComponent, Status


@dataclass
class TrackingAllocator:
    """Allocator pair recording every buffer it hands out and takes back."""

    fail_at: int | None = None
    allocated: list[list[float]] = field(default_factory=list)
    freed: list[list[float]] = field(default_factory=list)
    requests: int = 0

    def allocate(self, size: int) -> list[float]:
        index = self.requests
        self.requests += 1
        if self.fail_at is not None and index == self.fail_at:
            raise MemoryError(f"refusing allocation #{index}")
        buffer = [0.0] * size
        self.allocated.append(buffer)
        return buffer

    def free(self, buffer: list[float]) -> None:
        self.freed.append(buffer)

    def callbacks(self) -> ComponentCallbacks:
        return ComponentCallbacks(allocate=self.allocate, free=self.free)

    @property
    def leaked(self) -> list[list[float]]:
        freed_ids = {id(buffer) for buffer in self.freed}
        return [buffer for buffer in self.allocated if id(buffer) not in freed_ids]


@pytest.fixture()
def tracking_allocator() -> Callable[..., TrackingAllocator]:
    def _factory(fail_at: int | None = None) -> TrackingAllocator:
        return TrackingAllocator(fail_at=fail_at)

    return _factory


class CallCounter:
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}

    def __getitem__(self, operation: str) -> int:
        return self.counts.get(operation, 0)


def _wrap(component: IComponent, operation: str, wrapper: Callable[..., Any]) -> None:
    original = getattr(component, operation)

    def _call(*args: Any, **kwargs: Any) -> Any:
        return wrapper(original, *args, **kwargs)

    setattr(component, operation, _call)


@pytest.fixture()
def count_calls() -> Callable[..., CallCounter]:
    """Count calls to the named operations of a component instance."""

    def _factory(component: IComponent, *operations: str) -> CallCounter:
        counter = CallCounter()
        for operation in operations:

            def _counting(original: Callable[..., Any], *args: Any, _op: str = operation, **kwargs: Any) -> Any:
                counter.counts[_op] = counter.counts.get(_op, 0) + 1
                return original(*args, **kwargs)

            _wrap(component, operation, _counting)
        return counter

    return _factory


@pytest.fixture()
def inject_failure() -> Callable[..., IComponent]:
    """Make ``operation`` return ``status`` once it has been called ``after`` times.

    With ``times`` set, only that many calls fail and later calls pass through.
    """

    def _factory(
        component: IComponent,
        operation: str,
        status: Status = Status.ERROR,
        *,
        after: int = 0,
        times: int | None = None,
    ) -> IComponent:
        calls = {"n": 0}

        def _failing(original: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
            calls["n"] += 1
            result = original(*args, **kwargs)
            if calls["n"] <= after or (times is not None and calls["n"] > after + times):
                return result
            if isinstance(result, tuple):
                return (status, *result[1:])
            return status

        _wrap(component, operation, _failing)
        return component

    return _factory
