"""Parameter-matrix experiments over one base simulation file."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from itertools import product
import logging
from pathlib import Path
from typing import Any

from hybrid_sim.core import BatchRunner, SimEngine, SimulationError

from .artifacts import summary_artifact, write_json, write_jsonl, write_rows_csv, write_series_csv
from .loader import ConfigError, ConfigLoader


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchRunSummary:
    summary_csv: Path
    summary_json: Path
    total_runs: int
    succeeded_runs: int
    failed_runs: int


def expand_factors(factors: Any) -> tuple[list[str], list[tuple[Any, ...]]]:
    """Validate ``{dot.path: [values...]}`` and return its cartesian product.

    Paths are sorted so run numbering does not depend on mapping order.
    """
    if not isinstance(factors, dict) or not factors:
        raise ConfigError("batch config requires non-empty 'factors' object")
    for path, values in factors.items():
        if not isinstance(path, str) or not path:
            raise ConfigError("factor path must be non-empty string")
        if not isinstance(values, list) or not values:
            raise ConfigError(f"factor '{path}' must provide non-empty list")
    paths = sorted(factors)
    return paths, list(product(*(factors[path] for path in paths)))


def apply_factor(payload: dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at a dot path, creating intermediate mappings."""
    *parents, leaf = path.split(".")
    node: Any = payload
    for key in parents:
        node = node.setdefault(key, {}) if isinstance(node, dict) else None
    if not isinstance(node, dict):
        raise ConfigError(f"cannot apply factor '{path}': '{'.'.join(parents)}' is not an object")
    node[leaf] = value


class ExperimentRunner:
    """Run every factor combination in batch mode and persist per-run artifacts."""

    SUPPORTED_VERSION = "0.1"

    def __init__(self, loader: ConfigLoader | None = None) -> None:
        self._loader = loader or ConfigLoader()

    def run_batch(
        self,
        batch_config_path: str,
        *,
        output_dir: str | None = None,
        summary_csv: str | None = None,
        summary_json: str | None = None,
    ) -> BatchRunSummary:
        batch_path = Path(batch_config_path)
        batch = self._loader.read_payload(batch_path)
        version = str(batch.get("version", self.SUPPORTED_VERSION))
        if version != self.SUPPORTED_VERSION:
            raise ConfigError(f"unsupported batch version '{version}'")

        base_config = batch.get("base_config")
        if not isinstance(base_config, str) or not base_config:
            raise ConfigError("batch config requires non-empty 'base_config'")
        base_path = self._resolve(batch_path.parent, base_config)
        base_payload = self._loader.read_payload(base_path)
        factor_paths, combinations = expand_factors(batch.get("factors"))

        out_dir_raw = output_dir or batch.get("output_dir")
        if isinstance(out_dir_raw, str) and out_dir_raw:
            run_root = self._resolve(batch_path.parent, out_dir_raw)
        else:
            run_root = (batch_path.parent / "artifacts" / "batch").resolve()
        run_root.mkdir(parents=True, exist_ok=True)
        write_series = bool(batch.get("write_series", True))

        rows: list[dict[str, Any]] = []
        for index, combo in enumerate(combinations):
            run_id = f"run_{index:03d}"
            payload = deepcopy(base_payload)
            row: dict[str, Any] = {"run_id": run_id}
            for path, value in zip(factor_paths, combo, strict=True):
                apply_factor(payload, path, value)
                row[path] = value
            row.update(self._run_one(payload, run_root / run_id, write_series))
            logger.info("%s finished with status %s", run_id, row["status"])
            rows.append(row)

        succeeded = sum(1 for row in rows if row["status"] == "ok")
        csv_path = self._resolve(batch_path.parent, summary_csv) if summary_csv else run_root / "summary.csv"
        json_path = self._resolve(batch_path.parent, summary_json) if summary_json else run_root / "summary.json"
        write_rows_csv(csv_path, rows)
        write_json(
            json_path,
            {
                "version": self.SUPPORTED_VERSION,
                "base_config": str(base_path),
                "factors": {path: batch["factors"][path] for path in factor_paths},
                "total_runs": len(rows),
                "succeeded_runs": succeeded,
                "failed_runs": len(rows) - succeeded,
                "runs": rows,
            },
        )
        return BatchRunSummary(
            summary_csv=csv_path,
            summary_json=json_path,
            total_runs=len(rows),
            succeeded_runs=succeeded,
            failed_runs=len(rows) - succeeded,
        )

    def _run_one(self, payload: dict[str, Any], run_dir: Path, write_series: bool) -> dict[str, Any]:
        try:
            spec = self._loader.load_data(payload)
            engine = SimEngine()
            summary = BatchRunner(engine).run(spec)
        except (ConfigError, SimulationError, ValueError) as exc:
            logger.warning("%s failed: %s", run_dir.name, exc)
            return {"status": "error", "error": str(exc)}

        summary_path = write_json(run_dir / "summary.json", summary_artifact(summary, engine.metric_report()))
        events_path = write_jsonl(run_dir / "events.jsonl", (event.model_dump(mode="json") for event in engine.events))
        result: dict[str, Any] = {
            "status": "ok",
            "summary_path": str(summary_path),
            "events_path": str(events_path),
        }
        if write_series:
            result["series_path"] = str(write_series_csv(run_dir / "series.csv", summary))
        result.update(summary.to_dict())
        return result

    @staticmethod
    def _resolve(base_dir: Path, raw_path: str) -> Path:
        path = Path(raw_path)
        return path if path.is_absolute() else (base_dir / path).resolve()
