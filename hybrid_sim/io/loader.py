"""Configuration loading, compatibility conversion and validation."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from hybrid_sim.model import SimulationSpec

from .schema import CONFIG_SCHEMA


@dataclass(slots=True)
class ValidationIssue:
    path: str
    message: str


class ConfigError(Exception):
    """Configuration loading/validation error."""


class ConfigLoader:
    """Load and validate a simulation spec from JSON/YAML files."""

    SUPPORTED_VERSION = "0.2"
    # shorthand layout: component name under "model", experiment keys at the root
    _FLAT_EXPERIMENT_KEYS = {
        "start": "start_time",
        "stop": "stop_time",
        "step": "step_size",
        "tolerance": "tolerance",
        "mode": "mode",
    }

    def load(self, path: str) -> SimulationSpec:
        raw = self.read_payload(path)
        return self.load_data(raw)

    def load_data(self, payload: dict[str, Any]) -> SimulationSpec:
        normalized = self._normalize_version(payload)
        self._validate_schema(normalized)
        try:
            return SimulationSpec.model_validate(normalized)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def save(self, spec: SimulationSpec, path: str) -> None:
        output_path = Path(path)
        payload = spec.model_dump(mode="json", exclude_none=True)
        if output_path.suffix.lower() in {".yaml", ".yml"}:
            output_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        else:
            output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    def validate(self, spec_or_path: SimulationSpec | str) -> list[ValidationIssue]:
        if isinstance(spec_or_path, SimulationSpec):
            return []
        issues: list[ValidationIssue] = []
        try:
            self.load(spec_or_path)
        except ConfigError as exc:
            issues.append(ValidationIssue(path=spec_or_path, message=str(exc)))
        return issues

    @staticmethod
    def read_payload(path: str | Path) -> dict[str, Any]:
        """Parse a YAML or JSON file whose root must be a mapping."""
        input_path = Path(path)
        if not input_path.is_file():
            raise ConfigError(f"config file not found: {path}")

        text = input_path.read_text(encoding="utf-8")
        try:
            if input_path.suffix.lower() in {".yaml", ".yml"}:
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"invalid config syntax: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"config root must be object: {path}")
        return data

    def _normalize_version(self, payload: dict[str, Any]) -> dict[str, Any]:
        normalized_payload = dict(payload)
        version = str(normalized_payload.pop("version", self.SUPPORTED_VERSION))
        if version != self.SUPPORTED_VERSION:
            raise ConfigError(f"unsupported config version '{version}'")
        if "model" in normalized_payload:
            return self._expand_flat(normalized_payload)
        return {"version": self.SUPPORTED_VERSION, **normalized_payload}

    def _expand_flat(self, payload: dict[str, Any]) -> dict[str, Any]:
        if "component" in payload or "experiment" in payload:
            raise ConfigError("invalid config structure: 'model' shorthand cannot be mixed with 'component'/'experiment'")
        model = payload.pop("model")
        if not isinstance(model, str) or not model:
            raise ConfigError("invalid config structure: 'model' must be a component name")
        experiment: dict[str, Any] = {}
        for flat_key, key in self._FLAT_EXPERIMENT_KEYS.items():
            if flat_key in payload:
                experiment[key] = payload.pop(flat_key)
        params = payload.pop("params", {})
        if not isinstance(params, dict):
            raise ConfigError("invalid config structure: params must be object")
        expanded: dict[str, Any] = {
            "version": self.SUPPORTED_VERSION,
            "component": {"name": model, "params": params},
            "experiment": experiment,
        }
        instance_name = payload.pop("instance_name", None)
        if instance_name is not None:
            expanded["component"]["instance_name"] = instance_name
        if "logging" in payload:
            logging_on = payload.pop("logging")
            if not isinstance(logging_on, bool):
                raise ConfigError("invalid config structure: shorthand logging must be boolean")
            expanded["logging"] = {"enabled": logging_on}
        if "variables" in payload:
            expanded["variables"] = payload.pop("variables")
        if payload:
            unknown = ", ".join(sorted(payload))
            raise ConfigError(f"invalid config structure: unknown shorthand keys: {unknown}")
        return expanded

    @staticmethod
    def _validate_schema(payload: dict[str, Any]) -> None:
        validator = jsonschema.Draft202012Validator(CONFIG_SCHEMA)
        errors = sorted(validator.iter_errors(payload), key=lambda err: [str(part) for part in err.path])
        if not errors:
            return
        formatted = []
        for error in errors[:8]:
            path = ".".join(str(x) for x in error.path)
            formatted.append(f"{path or '<root>'}: {error.message}")
        raise ConfigError("schema validation failed: " + " | ".join(formatted))
