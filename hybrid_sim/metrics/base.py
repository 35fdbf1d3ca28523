"""Metrics interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Optional

from hybrid_sim.events import EventType, SimEvent


class IMetric(ABC):
    """Consumer of the driver's event trace.

    The engine feeds every published event whose type is in ``event_types``
    to ``consume`` in publication order, synchronously inside the step that
    produced it. ``None`` means the whole trace, from ``Instantiated`` to
    ``Completed``.
    """

    event_types: ClassVar[Optional[frozenset[EventType]]] = None

    @abstractmethod
    def consume(self, event: SimEvent) -> None:
        """Fold one trace event into the running aggregate."""

    @abstractmethod
    def report(self) -> dict:
        """Return the aggregate as plain JSON-compatible values.

        The engine merges all reports into one mapping, so keys should not
        collide with those of other metrics.
        """

    @abstractmethod
    def reset(self) -> None:
        """Drop the aggregate; called when the engine is reset for a new run."""
