from __future__ import annotations

from hybrid_sim.analysis import build_compare_report, compare_report_to_rows


def test_compare_report_has_scalar_and_final_value_rows() -> None:
    left = {
        "steps": 300,
        "step_size": 0.01,
        "final_time": 3.0,
        "time_events": 0,
        "state_events": 8,
        "step_events": 0,
        "series": {"time": [0.01, 3.0], "h": [1.0, 0.0]},
    }
    right = {
        "steps": 3000,
        "step_size": 0.001,
        "final_time": 3.0,
        "time_events": 0,
        "state_events": 10,
        "step_events": 0,
        "series": {"time": [0.001, 3.0], "h": [1.0, 0.5], "v": [0.0]},
    }

    report = build_compare_report(left, right, left_label="coarse", right_label="fine")

    assert report["left_label"] == "coarse"
    assert report["right_label"] == "fine"
    state_row = next(item for item in report["scalar_metrics"] if item["metric"] == "state_events")
    assert state_row["delta"] == 2.0
    assert state_row["delta_ratio_pct"] == 25.0
    time_row = next(item for item in report["scalar_metrics"] if item["metric"] == "time_events")
    assert time_row["delta_ratio_pct"] == 0.0
    assert [item["variable"] for item in report["final_values"]] == ["h", "time"]
    assert report["final_values"][0]["delta"] == 0.5


def test_compare_rows_flatten_report() -> None:
    report = build_compare_report({"steps": 1}, {"steps": 2})
    rows = compare_report_to_rows(report)

    assert rows[0]["category"] == "scalar"
    assert rows[0]["metric"] == "steps"
    assert all(row["category"] == "scalar" for row in rows)
    assert len(rows) == 6
