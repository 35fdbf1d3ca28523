"""Writers for run artifacts: summaries, event traces and recorded series."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable

from hybrid_sim.model import RunSummary


def _prepare(path: str | Path) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    return output


def write_json(path: str | Path, payload: dict[str, Any]) -> Path:
    output = _prepare(path)
    output.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return output


def write_jsonl(path: str | Path, rows: Iterable[dict[str, Any]]) -> Path:
    output = _prepare(path)
    with output.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")
    return output


def write_rows_csv(path: str | Path, rows: list[dict[str, Any]]) -> Path:
    """Header is the union of row keys in first-seen order."""
    output = _prepare(path)
    fieldnames = list(dict.fromkeys(key for row in rows for key in row))
    with output.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    return output


def write_series_csv(path: str | Path, summary: RunSummary) -> Path:
    """One row per committed step, one column per recorded variable."""
    output = _prepare(path)
    names = list(summary.series)
    with output.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["step", *names])
        for index, row in enumerate(zip(*(summary.series[name] for name in names)), start=1):
            writer.writerow([index, *row])
    return output


def summary_artifact(summary: RunSummary, metrics: dict[str, Any]) -> dict[str, Any]:
    """JSON document written for one run: counters, series and metric report."""
    return {**summary.to_dict(include_series=True), "metrics": metrics}
