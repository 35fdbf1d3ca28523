"""CLI entrypoint for simulation and validation."""

from __future__ import annotations

import argparse
import logging

from hybrid_sim.analysis import build_audit_report, build_compare_report, compare_report_to_rows
from hybrid_sim.core import IncrementalStepper, SimEngine, SimulationError, TIME_EPSILON
from hybrid_sim.io import (
    ConfigError,
    ConfigLoader,
    ExperimentRunner,
    summary_artifact,
    write_json,
    write_jsonl,
    write_rows_csv,
    write_series_csv,
)
from hybrid_sim.model import RunMode, RunSummary


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_incremental(engine: SimEngine, until: float | None, print_steps: bool) -> RunSummary:
    with IncrementalStepper(engine) as stepper:
        for values in stepper:
            if print_steps:
                print(" ".join(f"{value:.6g}" for value in values))
            if until is not None and engine.now >= until - TIME_EPSILON:
                break
        return stepper.summary()


def cmd_validate(args: argparse.Namespace) -> int:
    loader = ConfigLoader()
    try:
        spec = loader.load(args.config)
    except ConfigError as exc:
        print(f"[ERROR] {args.config}: {exc}")
        return 1
    engine = SimEngine()
    try:
        # component resolution and initialization must pass during validate
        engine.build(spec)
    except (SimulationError, ValueError) as exc:
        print(f"[ERROR] {args.config}: {exc}")
        return 1
    finally:
        engine.close()
    print("[OK] config validation passed")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    _configure_logging(args.log_level)
    loader = ConfigLoader()
    try:
        spec = loader.load(args.config)
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1

    if args.until is not None and args.until <= spec.experiment.start_time:
        print("[ERROR] --until must be greater than the start time")
        return 1

    incremental = args.incremental or spec.experiment.mode == RunMode.INCREMENTAL
    engine = SimEngine(event_id_mode=args.event_id_mode, event_id_seed=args.event_id_seed)
    try:
        engine.build(spec)
        if incremental:
            summary = _run_incremental(engine, args.until, args.print_steps)
        else:
            summary = engine.run(until=args.until)
    except (SimulationError, ValueError) as exc:
        print(f"[ERROR] simulation failed: {exc}")
        return 1
    finally:
        engine.close()

    events = [event.model_dump(mode="json") for event in engine.events]
    metrics = engine.metric_report()

    if args.summary_out:
        write_json(args.summary_out, summary_artifact(summary, metrics))
    if args.series_out:
        write_series_csv(args.series_out, summary)
    if args.events_out:
        write_jsonl(args.events_out, events)
    if args.audit_out:
        audit_report = build_audit_report(events, summary.to_dict(include_series=True), until=args.until)
        write_json(args.audit_out, audit_report)
        if audit_report["status"] != "pass":
            print(f"[ERROR] simulation audit failed, report={args.audit_out}")
            return 2

    print(summary.format_report())
    print(f"[OK] simulation completed, events={len(events)}, now={engine.now:.6g}")
    return 0


def cmd_batch_run(args: argparse.Namespace) -> int:
    _configure_logging(args.log_level)
    runner = ExperimentRunner()
    try:
        summary = runner.run_batch(
            args.batch_config,
            output_dir=args.output_dir,
            summary_csv=args.summary_csv,
            summary_json=args.summary_json,
        )
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1

    print(f"[OK] {summary.succeeded_runs}/{summary.total_runs} runs succeeded, summary={summary.summary_json}")
    if summary.failed_runs and args.strict_fail_on_error:
        print(f"[ERROR] {summary.failed_runs} run(s) failed, see {summary.summary_csv}")
        return 2
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    try:
        left_summary = ConfigLoader.read_payload(args.left_summary)
        right_summary = ConfigLoader.read_payload(args.right_summary)
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1

    report = build_compare_report(
        left_summary,
        right_summary,
        left_label=args.left_label or "left",
        right_label=args.right_label or "right",
    )
    if args.out_json:
        write_json(args.out_json, report)
    if args.out_csv:
        write_rows_csv(args.out_csv, compare_report_to_rows(report))

    for row in report["scalar_metrics"]:
        print(f"{row['metric']:<14} {row['left']:>14.6g} {row['right']:>14.6g} {row['delta']:>+14.6g}")
    print(f"[OK] compared {args.left_label} with {args.right_label}")
    return 0


def _add_log_level(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="threshold for driver and component log messages",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hybrid-sim", description="Fixed-step Model Exchange simulation CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="validate config file")
    validate_parser.add_argument("-c", "--config", required=True, help="path to config YAML/JSON")
    validate_parser.set_defaults(func=cmd_validate)

    run_parser = subparsers.add_parser("run", help="run simulation")
    run_parser.add_argument("-c", "--config", required=True, help="path to config YAML/JSON")
    run_parser.add_argument("--incremental", action="store_true", help="pull steps one at a time")
    run_parser.add_argument("--print-steps", action="store_true", help="print every pulled step (incremental)")
    run_parser.add_argument("--until", type=float, default=None, help="stop advancing at this simulation time")
    run_parser.add_argument("--summary-out", default=None, help="path to write summary JSON")
    run_parser.add_argument("--series-out", default=None, help="path to write series CSV")
    run_parser.add_argument("--events-out", default=None, help="path to write JSONL events")
    run_parser.add_argument("--audit-out", default=None, help="path to write audit report JSON")
    run_parser.add_argument(
        "--event-id-mode",
        choices=sorted(SimEngine.VALID_EVENT_ID_MODES),
        default=SimEngine.DEFAULT_EVENT_ID_MODE,
        help="how trace event ids are generated",
    )
    run_parser.add_argument("--event-id-seed", type=int, default=None, help="seed for seeded_random event ids")
    _add_log_level(run_parser)
    run_parser.set_defaults(func=cmd_run)

    batch_parser = subparsers.add_parser("batch-run", help="run matrix experiments")
    batch_parser.add_argument("-b", "--batch-config", required=True, help="path to batch config YAML/JSON")
    batch_parser.add_argument("--output-dir", default=None, help="batch output directory")
    batch_parser.add_argument("--summary-csv", default=None, help="summary CSV output path")
    batch_parser.add_argument("--summary-json", default=None, help="summary JSON output path")
    _add_log_level(batch_parser)
    batch_parser.add_argument(
        "--strict-fail-on-error",
        action="store_true",
        help="return non-zero when any batch run fails",
    )
    batch_parser.set_defaults(func=cmd_batch_run)

    compare_parser = subparsers.add_parser("compare", help="compare two summary json files")
    compare_parser.add_argument("--left-summary", required=True, help="left summary JSON path")
    compare_parser.add_argument("--right-summary", required=True, help="right summary JSON path")
    compare_parser.add_argument("--left-label", default="left", help="left side label")
    compare_parser.add_argument("--right-label", default="right", help="right side label")
    compare_parser.add_argument("--out-json", default=None, help="compare report JSON path")
    compare_parser.add_argument("--out-csv", default=None, help="compare rows CSV path")
    compare_parser.set_defaults(func=cmd_compare)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
