"""Configuration domain models and semantic validation."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VariableType(str, Enum):
    REAL = "Real"
    INTEGER = "Integer"
    BOOLEAN = "Boolean"
    STRING = "String"


class RunMode(str, Enum):
    """How the driver is consumed."""

    BATCH = "batch"
    INCREMENTAL = "incremental"


class VariableSpec(BaseModel):
    """One entry of the variable directory."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    value_reference: int = Field(ge=0)
    type: VariableType = VariableType.REAL


class ComponentSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    instance_name: str = "instance"
    guid: Optional[str] = None
    visible: bool = False
    params: dict[str, Any] = Field(default_factory=dict)


class ExperimentSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_time: float = 0.0
    stop_time: float
    step_size: float = Field(gt=0)
    tolerance: Optional[float] = Field(default=None, gt=0)
    mode: RunMode = RunMode.BATCH

    @model_validator(mode="after")
    def validate_horizon(self) -> "ExperimentSpec":
        if self.stop_time <= self.start_time:
            raise ValueError("stop_time must be greater than start_time")
        return self


class LoggingSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    categories: list[str] = Field(default_factory=list)


class SimulationSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    component: ComponentSpec
    experiment: ExperimentSpec
    logging: LoggingSpec = Field(default_factory=LoggingSpec)
    variables: list[VariableSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_variables(self) -> "SimulationSpec":
        names = [variable.name for variable in self.variables]
        if len(names) != len(set(names)):
            raise ValueError("duplicate variables.name")
        references = [variable.value_reference for variable in self.variables]
        if len(references) != len(set(references)):
            raise ValueError("duplicate variables.value_reference")
        return self
