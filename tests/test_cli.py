from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from hybrid_sim.cli.main import main


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def test_cli_validate_ok() -> None:
    code = main(["validate", "-c", str(EXAMPLES / "bouncing_ball.yaml")])
    assert code == 0


def test_cli_run_outputs(tmp_path: Path, capsys) -> None:
    summary_out = tmp_path / "summary.json"
    series_out = tmp_path / "series.csv"
    events_out = tmp_path / "events.jsonl"
    audit_out = tmp_path / "audit.json"

    code = main(
        [
            "run",
            "-c",
            str(EXAMPLES / "bouncing_ball.yaml"),
            "--summary-out",
            str(summary_out),
            "--series-out",
            str(series_out),
            "--events-out",
            str(events_out),
            "--audit-out",
            str(audit_out),
        ]
    )
    assert code == 0

    summary = json.loads(summary_out.read_text(encoding="utf-8"))
    assert summary["steps"] == 300
    assert summary["metrics"]["state_events"] == summary["state_events"]

    with series_out.open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][:3] == ["step", "time", "h"]
    assert len(rows) == 301

    first_event = json.loads(events_out.read_text(encoding="utf-8").splitlines()[0])
    assert first_event["type"] == "Instantiated"
    assert json.loads(audit_out.read_text(encoding="utf-8"))["status"] == "pass"

    out = capsys.readouterr().out
    assert "steps ............ 300" in out
    assert "[OK] simulation completed" in out


def test_cli_run_incremental_matches_batch(tmp_path: Path, capsys) -> None:
    batch_out = tmp_path / "batch.json"
    incremental_out = tmp_path / "incremental.json"

    assert main(["run", "-c", str(EXAMPLES / "bouncing_ball.yaml"), "--summary-out", str(batch_out)]) == 0
    assert (
        main(
            [
                "run",
                "-c",
                str(EXAMPLES / "bouncing_ball.yaml"),
                "--incremental",
                "--summary-out",
                str(incremental_out),
            ]
        )
        == 0
    )

    batch = json.loads(batch_out.read_text(encoding="utf-8"))
    incremental = json.loads(incremental_out.read_text(encoding="utf-8"))
    for key in ("steps", "final_time", "time_events", "state_events", "step_events"):
        assert batch[key] == incremental[key]


def test_cli_run_incremental_prints_steps(capsys) -> None:
    code = main(["run", "-c", str(EXAMPLES / "dahlquist.yaml"), "--print-steps"])
    assert code == 0

    lines = capsys.readouterr().out.splitlines()
    step_lines = [line for line in lines if line and line[0].isdigit()]
    assert len(step_lines) == 9
    assert step_lines[0].split()[0] == "1"


def test_cli_run_until_pauses_and_audit_passes(tmp_path: Path) -> None:
    summary_out = tmp_path / "summary.json"
    audit_out = tmp_path / "audit.json"

    code = main(
        [
            "run",
            "-c",
            str(EXAMPLES / "bouncing_ball.yaml"),
            "--until",
            "1.0",
            "--summary-out",
            str(summary_out),
            "--audit-out",
            str(audit_out),
        ]
    )
    assert code == 0
    summary = json.loads(summary_out.read_text(encoding="utf-8"))
    assert summary["steps"] == 100
    assert json.loads(audit_out.read_text(encoding="utf-8"))["status"] == "pass"


def test_cli_batch_run_outputs_summary(tmp_path: Path) -> None:
    base_config = tmp_path / "base.yaml"
    base_config.write_text(
        (EXAMPLES / "bouncing_ball.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    batch_config = tmp_path / "batch.yaml"
    batch_config.write_text(
        """
version: "0.1"
base_config: "base.yaml"
output_dir: "out"
factors:
  experiment.step_size: [0.01, 0.005]
  component.params.e: [0.5, 0.7]
""".strip(),
        encoding="utf-8",
    )

    code = main(["batch-run", "-b", str(batch_config)])
    assert code == 0

    summary_json = tmp_path / "out" / "summary.json"
    summary_csv = tmp_path / "out" / "summary.csv"
    assert summary_json.exists()
    assert summary_csv.exists()
    assert (tmp_path / "out" / "run_000" / "series.csv").exists()
    assert (tmp_path / "out" / "run_000" / "events.jsonl").exists()

    payload = json.loads(summary_json.read_text(encoding="utf-8"))
    assert payload["total_runs"] == 4
    assert payload["succeeded_runs"] == 4
    assert payload["failed_runs"] == 0
    assert sorted(run["steps"] for run in payload["runs"]) == [300, 300, 600, 600]


def test_cli_batch_run_strict_mode_returns_non_zero_on_failed_runs(tmp_path: Path) -> None:
    base_config = tmp_path / "base.yaml"
    base_config.write_text(
        (EXAMPLES / "bouncing_ball.yaml").read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    batch_config = tmp_path / "batch.yaml"
    batch_config.write_text(
        """
version: "0.1"
base_config: "base.yaml"
output_dir: "out"
write_series: false
factors:
  component.name: ["bouncing_ball", "no_such_model"]
""".strip(),
        encoding="utf-8",
    )

    code = main(["batch-run", "-b", str(batch_config), "--strict-fail-on-error"])
    assert code == 2

    payload = json.loads((tmp_path / "out" / "summary.json").read_text(encoding="utf-8"))
    assert payload["total_runs"] == 2
    assert payload["succeeded_runs"] == 1
    assert payload["failed_runs"] == 1
    failed = next(run for run in payload["runs"] if run["status"] == "error")
    assert "unknown component" in failed["error"]
    assert not (tmp_path / "out" / "run_000" / "series.csv").exists()


def test_cli_compare_outputs_json_and_csv(tmp_path: Path) -> None:
    left = tmp_path / "left.json"
    right = tmp_path / "right.json"
    out_json = tmp_path / "compare.json"
    out_csv = tmp_path / "compare.csv"
    assert main(["run", "-c", str(EXAMPLES / "bouncing_ball.yaml"), "--summary-out", str(left)]) == 0
    assert main(["run", "-c", str(EXAMPLES / "dahlquist.yaml"), "--summary-out", str(right)]) == 0

    code = main(
        [
            "compare",
            "--left-summary",
            str(left),
            "--right-summary",
            str(right),
            "--left-label",
            "ball",
            "--right-label",
            "decay",
            "--out-json",
            str(out_json),
            "--out-csv",
            str(out_csv),
        ]
    )
    assert code == 0
    payload = json.loads(out_json.read_text(encoding="utf-8"))
    assert payload["left_label"] == "ball"
    assert payload["right_label"] == "decay"
    steps = next(row for row in payload["scalar_metrics"] if row["metric"] == "steps")
    assert (steps["left"], steps["right"]) == (300.0, 10.0)
    assert [row["variable"] for row in payload["final_values"]] == ["time"]

    header = out_csv.read_text(encoding="utf-8").splitlines()[0]
    assert header.startswith("category,")


def test_cli_run_seeded_event_ids_are_reproducible(tmp_path: Path) -> None:
    def _event_ids(name: str) -> list[str]:
        events_out = tmp_path / name
        code = main(
            [
                "run",
                "-c",
                str(EXAMPLES / "dahlquist.yaml"),
                "--event-id-mode",
                "seeded_random",
                "--event-id-seed",
                "7",
                "--events-out",
                str(events_out),
            ]
        )
        assert code == 0
        lines = events_out.read_text(encoding="utf-8").splitlines()
        return [json.loads(line)["event_id"] for line in lines]

    first = _event_ids("first.jsonl")
    second = _event_ids("second.jsonl")

    assert first == second
    assert len(set(first)) == len(first)
    assert not any(event_id.startswith("evt-") for event_id in first)


def test_cli_run_rejects_unknown_event_id_mode() -> None:
    with pytest.raises(SystemExit):
        main(["run", "-c", str(EXAMPLES / "dahlquist.yaml"), "--event-id-mode", "sequential"])
