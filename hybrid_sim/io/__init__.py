"""I/O exports."""

from .artifacts import (
    summary_artifact,
    write_json,
    write_jsonl,
    write_rows_csv,
    write_series_csv,
)
from .experiment_runner import BatchRunSummary, ExperimentRunner, apply_factor, expand_factors
from .loader import ConfigError, ConfigLoader, ValidationIssue
from .schema import CONFIG_SCHEMA

__all__ = [
    "BatchRunSummary",
    "CONFIG_SCHEMA",
    "ConfigError",
    "ConfigLoader",
    "ExperimentRunner",
    "ValidationIssue",
    "apply_factor",
    "expand_factors",
    "summary_artifact",
    "write_json",
    "write_jsonl",
    "write_rows_csv",
    "write_series_csv",
]
