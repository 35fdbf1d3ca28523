"""In-process publication of driver trace events."""

from __future__ import annotations

from collections.abc import Iterable
import random
import uuid
from typing import Any, Callable

from .types import EventType, SimEvent


EventHandler = Callable[[SimEvent], None]


class EventBus:
    """Stamp each published event with a sequence number and id, then fan it out.

    Handlers run synchronously, in subscription order, inside the step that
    produced the event. A handler registered with ``types`` only sees those
    event classes.
    """

    ID_MODES = ("deterministic", "random", "seeded_random")

    def __init__(
        self,
        *,
        event_id_mode: str = "deterministic",
        event_id_seed: int | None = None,
    ) -> None:
        mode = event_id_mode.lower().strip()
        if mode not in self.ID_MODES:
            raise ValueError(f"invalid event_id_mode '{event_id_mode}'")
        self._event_id_mode = mode
        self._rng = random.Random(event_id_seed)
        self._subscriptions: list[tuple[EventHandler, frozenset[EventType] | None]] = []
        self._seq = 0

    @property
    def published(self) -> int:
        return self._seq

    def subscribe(self, handler: EventHandler, types: Iterable[EventType] | None = None) -> None:
        wanted = frozenset(EventType(value) for value in types) if types is not None else None
        self._subscriptions.append((handler, wanted))

    def unsubscribe(self, handler: EventHandler) -> None:
        self._subscriptions = [entry for entry in self._subscriptions if entry[0] != handler]

    def publish(
        self,
        *,
        event_type: EventType,
        time: float,
        correlation_id: str,
        step: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> SimEvent:
        event = SimEvent(
            event_id=self._event_id(),
            seq=self._seq,
            correlation_id=correlation_id,
            time=time,
            type=event_type,
            step=step,
            payload=payload or {},
        )
        self._seq += 1
        for handler, wanted in list(self._subscriptions):
            if wanted is None or event.type in wanted:
                handler(event)
        return event

    def _event_id(self) -> str:
        if self._event_id_mode == "random":
            return str(uuid.uuid4())
        if self._event_id_mode == "seeded_random":
            return f"{self._rng.getrandbits(128):032x}"
        return f"evt-{self._seq:08d}"
