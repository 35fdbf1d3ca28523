"""Default metrics implementation."""

from __future__ import annotations

from collections import defaultdict

from hybrid_sim.events import EventType, SimEvent

from .base import IMetric


_EVENT_KEYS = {
    EventType.TIME_EVENT: "time_events",
    EventType.STATE_EVENT: "state_events",
    EventType.STEP_EVENT: "step_events",
}


class RunMetrics(IMetric):
    """Aggregate event-class counts and timing from the event stream."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._counts: dict[str, int] = defaultdict(int)
        self._first_event_time: dict[str, float] = {}
        self._last_event_time: dict[str, float] = {}
        self._indicator_crossings: dict[int, int] = defaultdict(int)
        self._event_count = 0
        self._error_count = 0
        self._terminate_time: float | None = None
        self._max_time = 0.0

    def consume(self, event: SimEvent) -> None:
        self._event_count += 1
        self._max_time = max(self._max_time, event.time)

        key = _EVENT_KEYS.get(event.type)
        if key is not None:
            self._counts[key] += 1
            self._first_event_time.setdefault(key, event.time)
            self._last_event_time[key] = event.time

        if event.type == EventType.STATE_EVENT:
            for index in event.payload.get("indicators", []):
                if isinstance(index, int):
                    self._indicator_crossings[index] += 1

        elif event.type == EventType.TERMINATE_REQUESTED:
            self._terminate_time = event.time

        elif event.type == EventType.ERROR:
            self._error_count += 1

    def report(self) -> dict:
        return {
            "time_events": self._counts.get("time_events", 0),
            "state_events": self._counts.get("state_events", 0),
            "step_events": self._counts.get("step_events", 0),
            "first_event_time": dict(self._first_event_time),
            "last_event_time": dict(self._last_event_time),
            "indicator_crossings": {str(index): count for index, count in sorted(self._indicator_crossings.items())},
            "error_count": self._error_count,
            "terminate_time": self._terminate_time,
            "event_count": self._event_count,
            "max_time": self._max_time,
        }
