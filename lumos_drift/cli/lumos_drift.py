"""
Command-line entry point for generated-code drift checks.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from tqdm import tqdm

from lumos_drift.core.config import LumosDriftConfig, load_config
from lumos_drift.core.drift_gate import DriftGate
from lumos_drift.core.drift_report import aggregate, load_records, write_github_outputs, write_report
from lumos_drift.core.errors import ERR_CONFIG, ERR_INTERNAL, LumosDriftError
from lumos_drift.core.models import DriftStatus, Outcome, RunReport
from lumos_drift.core.policy import evaluate, resolve_policy_context

logger = logging.getLogger(__name__)

_OUTCOME_ICONS = {
    Outcome.PASS: "✅",
    Outcome.WARN_PASS: "⚠️ ",
    Outcome.FAIL: "❌",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _resolve_config(args: argparse.Namespace) -> LumosDriftConfig:
    cli_args: Dict[str, Any] = {
        "project_root": args.directory,
        "schema_globs": args.schema or None,
        "fail_on_drift": args.fail_on_drift,
        "max_workers": args.max_workers,
    }
    return load_config(config_path=args.config, cli_args=cli_args)


def _print_report(report: RunReport) -> None:
    decision = report.decision
    print(f"{_OUTCOME_ICONS[decision.outcome]} {decision.outcome.value}: {decision.reason}")
    print(f"   Schemas validated: {report.schemas_validated}")
    print(f"   Schemas generated: {report.schemas_generated}")
    print(f"   Drift detected:    {'yes' if report.drift_detected else 'no'}")

    reported = set()
    for record in report.failed_schemas():
        # both languages carry the same error
        if record.schema not in reported:
            reported.add(record.schema)
            print(f"   ✗ {record.schema.path}: {record.error}")
    for record in report.records:
        if record.status is DriftStatus.MISSING_COMMITTED:
            print(f"   ? {record.schema.name} ({record.language.value}): no committed output")

    if report.diff_summary:
        print("\nDiff summary:\n")
        print(report.diff_summary)


def _emit(report: RunReport, args: argparse.Namespace) -> None:
    _print_report(report)
    if args.output:
        path = write_report(report, Path(args.output))
        print(f"📄 Drift report exported to {path}")
    github_output = args.github_output or os.environ.get("GITHUB_OUTPUT")
    if github_output:
        write_github_outputs(report, Path(github_output))
        logger.debug("Wrote step outputs to %s", github_output)


def _run_check(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    context = resolve_policy_context(
        config,
        event_name=args.event,
        branch=args.branch,
        labels=args.label,
        override=args.override,
    )
    gate = DriftGate(config=config)

    progress: Optional[tqdm] = None
    on_start = on_complete = None
    if args.progress:
        progress = tqdm(desc="Checking schemas", unit="schema", file=sys.stderr)

        def on_start(total):
            progress.reset(total=total)

        def on_complete(_schema):
            progress.update(1)

    try:
        report = gate.run(context=context, on_start=on_start, on_complete=on_complete)
    finally:
        if progress is not None:
            progress.close()

    _emit(report, args)
    return report.exit_code


def _run_evaluate(args: argparse.Namespace) -> int:
    config = load_config(config_path=args.config, cli_args={"fail_on_drift": args.fail_on_drift})
    context = resolve_policy_context(
        config,
        event_name=args.event,
        branch=args.branch,
        labels=args.label,
        override=args.override,
    )
    records = load_records(Path(args.report))
    report = aggregate(records, evaluate(records, context))
    _emit(report, args)
    return report.exit_code


def _add_policy_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to configuration YAML file (default: lumos-drift.config.yaml)")
    parser.add_argument("--fail-on-drift", dest="fail_on_drift", action="store_true", default=None,
                        help="Fail the run when drift is detected.")
    parser.add_argument("--no-fail-on-drift", dest="fail_on_drift", action="store_false",
                        help="Report drift as a warning only.")
    parser.add_argument("--override", action="store_true",
                        help="Accept drift for this run (downgrades drift failures to warnings).")
    parser.add_argument("--label", action="append", default=[],
                        help="Pull request label; repeat for several. Matches override_labels.")
    parser.add_argument("--event", default=None,
                        help="CI event name (default: $GITHUB_EVENT_NAME).")
    parser.add_argument("--branch", default=None,
                        help="Branch name (default: $GITHUB_HEAD_REF or $GITHUB_REF_NAME).")
    parser.add_argument("--output", help="Write the JSON drift report to this path.")
    parser.add_argument("--github-output", default=None,
                        help="Append step outputs to this file (default: $GITHUB_OUTPUT).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="lumos-drift: detect drift between generated and committed schema code."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Generate code for every schema and compare with the committed output")
    check.add_argument("directory", nargs="?", default=None,
                       help="Project root (default: config project_root or the current directory).")
    check.add_argument("--schema", action="append", default=[],
                       help="Schema glob relative to the project root; repeat for several.")
    check.add_argument("--max-workers", type=int, default=None,
                       help="Number of schemas processed concurrently.")
    check.add_argument("--progress", action="store_true", help="Show a progress bar.")
    _add_policy_flags(check)
    check.set_defaults(func=_run_check)

    evaluate_cmd = subparsers.add_parser("evaluate", help="Re-evaluate the policy for an existing JSON report")
    evaluate_cmd.add_argument("report", help="Path to a report written by 'check --output'.")
    _add_policy_flags(evaluate_cmd)
    evaluate_cmd.set_defaults(func=_run_evaluate)

    return parser


def main(argv=None):
    """Main entry point for the drift gate."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        exit_code = args.func(args)
    except LumosDriftError as e:
        print(f"❌ {e}", file=sys.stderr)
        exit_code = e.exit_code
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        exit_code = ERR_CONFIG
    except Exception as e:
        print(f"\n❌ An unexpected error occurred: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        exit_code = ERR_INTERNAL
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
