"""Post-simulation audit checks on the event trace and run summary."""

from __future__ import annotations

from typing import Any


TIME_TOLERANCE = 1e-12

_COUNTED_EVENTS = {
    "TimeEvent": "time_events",
    "StateEvent": "state_events",
    "StepEvent": "step_events",
}


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def build_audit_report(
    events: list[dict[str, Any]],
    summary: dict[str, Any],
    *,
    until: float | None = None,
) -> dict[str, Any]:
    """Check the invariants every run must satisfy.

    ``events`` are serialized ``SimEvent`` records in publication order,
    ``summary`` is ``RunSummary.to_dict()`` (optionally with series).
    ``until`` is the pause time of a run stopped before its stop time.
    """
    issues: list[dict[str, Any]] = []
    checks: dict[str, Any] = {}

    start_time = _to_float(summary.get("start_time"))
    stop_time = _to_float(summary.get("stop_time"))
    final_time = _to_float(summary.get("final_time"))

    regressions: list[dict[str, Any]] = []
    previous_time: float | None = None
    for event in sorted(events, key=lambda item: item.get("seq", 0)):
        time = _to_float(event.get("time"))
        if time is None:
            continue
        if previous_time is not None and time < previous_time - TIME_TOLERANCE:
            regressions.append({"event_id": event.get("event_id"), "time": time, "previous": previous_time})
        previous_time = time
    if regressions:
        issues.append(
            {
                "rule": "event_time_monotonic",
                "severity": "error",
                "message": "event time decreased along the trace",
                "samples": regressions[:20],
            }
        )
    checks["event_time_monotonic"] = {"passed": not regressions}

    outside: list[dict[str, Any]] = []
    if start_time is not None and stop_time is not None:
        for event in events:
            time = _to_float(event.get("time"))
            if time is None:
                continue
            if time < start_time - TIME_TOLERANCE or time > stop_time + TIME_TOLERANCE:
                outside.append({"event_id": event.get("event_id"), "time": time})
    if outside:
        issues.append(
            {
                "rule": "time_within_horizon",
                "severity": "error",
                "message": "event recorded outside [start_time, stop_time]",
                "samples": outside[:20],
            }
        )
    checks["time_within_horizon"] = {"passed": not outside}

    observed = {key: 0 for key in _COUNTED_EVENTS.values()}
    for event in events:
        key = _COUNTED_EVENTS.get(str(event.get("type")))
        if key is not None:
            observed[key] += 1
    mismatched = {
        key: {"events": count, "summary": summary.get(key)}
        for key, count in observed.items()
        if summary.get(key) != count
    }
    if mismatched:
        issues.append(
            {
                "rule": "event_count_consistency",
                "severity": "error",
                "message": "event counters disagree with the event trace",
                "mismatched": mismatched,
            }
        )
    checks["event_count_consistency"] = {"passed": not mismatched, "observed": observed}

    final_ok = True
    if final_time is not None and stop_time is not None:
        if summary.get("terminated_by_model"):
            final_ok = final_time <= stop_time + TIME_TOLERANCE
        else:
            expected = stop_time if until is None else min(until, stop_time)
            final_ok = final_time >= expected - TIME_TOLERANCE and final_time <= stop_time + TIME_TOLERANCE
    if not final_ok:
        issues.append(
            {
                "rule": "final_time",
                "severity": "error",
                "message": "final time must reach the run horizon unless the model terminated early",
                "final_time": final_time,
                "stop_time": stop_time,
            }
        )
    checks["final_time"] = {"passed": final_ok}

    series = summary.get("series")
    bad_series: list[str] = []
    if isinstance(series, dict):
        steps = summary.get("steps")
        bad_series = [name for name, values in series.items() if len(values) != steps]
        if bad_series:
            issues.append(
                {
                    "rule": "series_length",
                    "severity": "warning",
                    "message": "recorded series length differs from step count",
                    "variables": bad_series,
                }
            )
    checks["series_length"] = {"passed": not bad_series}

    return {
        "status": "pass" if not any(issue["severity"] == "error" for issue in issues) else "fail",
        "issue_count": len(issues),
        "issues": issues,
        "checks": checks,
    }
