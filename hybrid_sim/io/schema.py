"""JSON schema for configuration structure validation."""

from __future__ import annotations

CONFIG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Hybrid Simulation Config",
    "type": "object",
    "required": ["version", "component", "experiment"],
    "properties": {
        "version": {"type": "string"},
        "component": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "instance_name": {"type": "string", "minLength": 1},
                "guid": {"type": "string"},
                "visible": {"type": "boolean"},
                "params": {"type": "object", "default": {}},
            },
            "additionalProperties": False,
        },
        "experiment": {
            "type": "object",
            "required": ["stop_time", "step_size"],
            "properties": {
                "start_time": {"type": "number"},
                "stop_time": {"type": "number"},
                "step_size": {"type": "number", "exclusiveMinimum": 0},
                "tolerance": {"type": "number", "exclusiveMinimum": 0},
                "mode": {"type": "string", "enum": ["batch", "incremental"]},
            },
            "additionalProperties": False,
        },
        "logging": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "categories": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": False,
        },
        "variables": {
            "type": "array",
            "items": {"$ref": "#/$defs/Variable"},
            "default": [],
        },
    },
    "$defs": {
        "Variable": {
            "type": "object",
            "required": ["name", "value_reference"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "value_reference": {"type": "integer", "minimum": 0},
                "type": {"type": "string", "enum": ["Real", "Integer", "Boolean", "String"]},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}
