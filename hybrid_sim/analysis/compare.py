"""Side-by-side comparison of two run summaries."""

from __future__ import annotations

import math
from typing import Any


DEFAULT_SCALAR_KEYS: tuple[str, ...] = (
    "steps",
    "step_size",
    "final_time",
    "time_events",
    "state_events",
    "step_events",
)


def _number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _delta(left: float, right: float) -> dict[str, float]:
    difference = right - left
    # relative change is undefined against a zero baseline; report 0 there
    ratio = difference / left * 100.0 if left else 0.0
    return {"left": left, "right": right, "delta": difference, "delta_ratio_pct": ratio}


def _last_values(summary: dict[str, Any]) -> dict[str, float]:
    series = summary.get("series")
    if not isinstance(series, dict):
        return {}
    return {str(name): _number(values[-1]) for name, values in series.items() if values}


def build_compare_report(
    left_summary: dict[str, Any],
    right_summary: dict[str, Any],
    *,
    left_label: str = "left",
    right_label: str = "right",
    scalar_keys: tuple[str, ...] = DEFAULT_SCALAR_KEYS,
) -> dict[str, Any]:
    """Diff counters and the final recorded value of every shared variable.

    Rows are ordered deterministically: scalars in ``scalar_keys`` order,
    final values by variable name.
    """
    scalar_metrics = [
        {"metric": key, **_delta(_number(left_summary.get(key)), _number(right_summary.get(key)))}
        for key in scalar_keys
    ]
    left_final = _last_values(left_summary)
    right_final = _last_values(right_summary)
    final_values = []
    for name in sorted(left_final.keys() & right_final.keys()):
        row = _delta(left_final[name], right_final[name])
        row.pop("delta_ratio_pct")
        final_values.append({"variable": name, **row})
    return {
        "left_label": left_label,
        "right_label": right_label,
        "scalar_metrics": scalar_metrics,
        "final_values": final_values,
    }


def compare_report_to_rows(report: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a compare report into rows with a ``category`` column."""
    rows: list[dict[str, Any]] = [
        {"category": "scalar", **item}
        for item in report.get("scalar_metrics", [])
        if isinstance(item, dict)
    ]
    rows.extend(
        {"category": "final_value", "metric": item.get("variable", ""), **item}
        for item in report.get("final_values", [])
        if isinstance(item, dict)
    )
    return rows
