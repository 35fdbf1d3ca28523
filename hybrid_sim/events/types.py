"""Simulation event definitions."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    INSTANTIATED = "Instantiated"
    INITIALIZED = "Initialized"
    TIME_EVENT = "TimeEvent"
    STATE_EVENT = "StateEvent"
    STEP_EVENT = "StepEvent"
    TERMINATE_REQUESTED = "TerminateRequested"
    ERROR = "Error"
    COMPLETED = "Completed"


class SimEvent(BaseModel):
    """Normalized event envelope for tracing and metrics."""

    model_config = ConfigDict(extra="forbid")

    event_id: str
    seq: int = Field(ge=0)
    correlation_id: str
    time: float
    type: EventType
    step: Optional[int] = Field(default=None, ge=0)
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)
