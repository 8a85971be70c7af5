"""Command-line interface for netload."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from time import perf_counter
from typing import Any, List, Optional

from netload.config import SWEEP_CONFIG
from netload.demand import Demand
from netload.failure import FailureScenarioResult, worst_case_failure
from netload.graph import Graph
from netload.io import (
    load_network_csv,
    load_scenario_yaml,
    load_traffic_csv,
    results_to_dict,
    write_failure_csv,
    write_results_json,
    write_utilization_csv,
)
from netload.logging import get_logger, set_global_log_level
from netload.simulate import UNKNOWN_NODE, UtilizationReport, simulate

logger = get_logger(__name__)

UTILIZATION_FILE = "utilization_report.csv"
FAILURE_FILE = "wcf_report.csv"
RESULTS_FILE = "results.json"


def _format_table(
    headers: List[str],
    rows: List[List[Any]],
    min_width: int = 8,
    max_col_width: Optional[int] = None,
) -> str:
    """Format data as a simple ASCII table.

    Args:
        headers: Column headers
        rows: Data rows
        min_width: Minimum column width
        max_col_width: Cells longer than this are clipped with "..."

    Returns:
        Formatted table string, empty when there are no rows
    """
    if not rows:
        return ""

    def clip(val: Any) -> str:
        s = str(val)
        if max_col_width is not None and len(s) > max_col_width:
            return s[: max_col_width - 3] + "..."
        return s

    clipped_headers = [clip(h) for h in headers]
    clipped_rows = [[clip(item) for item in row] for row in rows]

    all_data = [clipped_headers] + clipped_rows
    col_widths = []
    for col_idx in range(len(clipped_headers)):
        max_width = max(len(row[col_idx]) for row in all_data)
        col_widths.append(max(max_width, min_width))

    def format_row(row_data: List[str]) -> str:
        return "   " + " | ".join(
            f"{item:<{col_widths[i]}}" for i, item in enumerate(row_data)
        )

    lines = [format_row(clipped_headers)]
    lines.append("   " + "-+-".join("-" * width for width in col_widths))
    for row in clipped_rows:
        lines.append(format_row(row))
    return "\n".join(lines)


def _format_number(value: Any) -> str:
    """Return a number with up to three decimals and trailing zeros trimmed.

    Examples:
        0.4 -> "0.4"; 10.0 -> "10"; 1234.5678 -> "1,234.568".
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return str(value)

    s = f"{v:,.3f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def _format_duration(seconds: float) -> str:
    """Return a concise human-readable duration string."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f} ms"
    if seconds < 60.0:
        return f"{seconds:.2f} s"
    minutes = int(seconds // 60)
    rem = seconds - minutes * 60
    return f"{minutes}m {rem:.1f}s"


def _report_table(report: UtilizationReport) -> str:
    return _format_table(
        ["From", "To", "Load", "Capacity", "Utilization"],
        [
            [src, dst, _format_number(load), _format_number(cap), f"{util:.1%}"]
            for src, dst, load, cap, util in report.rows()
        ],
        min_width=4,
        max_col_width=40,
    )


def _print_summary(
    report: UtilizationReport, result: Optional[FailureScenarioResult]
) -> None:
    print("Link utilization:")
    print(_report_table(report) or "   (no links)")
    if report.unroutable:
        print(f"\nUnroutable demands ({len(report.unroutable)}):")
        for outcome in report.unroutable:
            print(f"   {outcome.demand} [{outcome.reason}]")

    if result is None:
        return
    print()
    if not result.evaluated:
        print("Worst-case failure: no single-link failure evaluated")
        return
    assert result.report is not None
    print(
        f"Worst-case failure: {result.removed_link} "
        f"(max utilization {result.severity:.1%})"
    )
    print(_report_table(result.report) or "   (no links)")
    if result.newly_unroutable:
        print(f"\nNewly unroutable demands ({len(result.newly_unroutable)}):")
        for outcome in result.newly_unroutable:
            print(f"   {outcome.demand}")


def _analyze(
    graph: Graph,
    demands: List[Demand],
    output_dir: Optional[Path],
    parallelism: Optional[int],
    no_sweep: bool,
    stdout: bool,
) -> None:
    """Run the simulation and failure sweep, then write and print results."""
    start = perf_counter()
    report = simulate(graph, demands)
    unknown = [o for o in report.unroutable if o.reason == UNKNOWN_NODE]
    if unknown:
        logger.warning(
            f"{len(unknown)} demand(s) reference nodes not in the network: "
            + ", ".join(str(o.demand) for o in unknown[:5])
            + (" ..." if len(unknown) > 5 else "")
        )
    logger.info(
        f"Base simulation: max utilization {report.max_utilization:.4f}, "
        f"{len(report.unroutable)} unroutable demand(s)"
    )

    result = None
    if not no_sweep:
        result = worst_case_failure(graph, demands, parallelism=parallelism)
    logger.info(f"Analysis completed in {_format_duration(perf_counter() - start)}")

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        write_utilization_csv(report, output_dir / UTILIZATION_FILE)
        if result is not None:
            write_failure_csv(result, output_dir / FAILURE_FILE)
        write_results_json(report, result, output_dir / RESULTS_FILE)
        logger.info(f"Results written to: {output_dir}")

    if stdout:
        print(json.dumps(results_to_dict(report, result), indent=2, default=str))
    else:
        _print_summary(report, result)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``netload`` command.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = argparse.ArgumentParser(
        prog="netload",
        description="Compute link utilization and the worst-case single-link failure.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="Available commands",
        metavar="{run,scenario}",
        help="Available commands",
    )

    run_parser = subparsers.add_parser(
        "run", help="Analyze a network CSV and a traffic CSV"
    )
    run_parser.add_argument("network", type=Path, help="Path to the network CSV file")
    run_parser.add_argument("traffic", type=Path, help="Path to the traffic CSV file")

    scenario_parser = subparsers.add_parser(
        "scenario", help="Analyze a YAML scenario holding network and demands"
    )
    scenario_parser.add_argument("scenario", type=Path, help="Path to scenario YAML")

    for p in (run_parser, scenario_parser):
        p.add_argument(
            "--output",
            "-o",
            type=Path,
            default=None,
            help=(
                f"Directory for {UTILIZATION_FILE}, {FAILURE_FILE} and"
                f" {RESULTS_FILE} (nothing is written when omitted)"
            ),
        )
        p.add_argument(
            "--parallelism",
            "-p",
            type=int,
            default=None,
            help="Worker processes for the failure sweep (default: 1)",
        )
        p.add_argument(
            "--no-sweep",
            action="store_true",
            help="Skip the single-link failure sweep",
        )
        p.add_argument(
            "--stdout",
            action="store_true",
            help="Print results as JSON instead of tables",
        )

    effective_args = sys.argv[1:] if argv is None else argv
    if not effective_args:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(effective_args)

    if args.verbose:
        set_global_log_level(logging.DEBUG)
        logger.debug("Debug logging enabled")
    elif args.quiet:
        set_global_log_level(logging.WARNING)
    else:
        set_global_log_level(logging.INFO)

    parallelism = args.parallelism
    if parallelism is None and not args.no_sweep:
        try:
            parallelism = SWEEP_CONFIG.effective_parallelism
        except ValueError as e:
            logger.error(f"Invalid configuration: {e}")
            raise SystemExit(1) from None

    try:
        if args.command == "run":
            graph = load_network_csv(args.network)
            demands = load_traffic_csv(args.traffic)
        else:
            scenario = load_scenario_yaml(args.scenario)
            graph, demands = scenario.graph, scenario.demands
    except FileNotFoundError as e:
        logger.error(f"Input file not found: {e.filename}")
        raise SystemExit(1) from None
    except ValueError as e:
        logger.error(f"Invalid input: {type(e).__name__}: {e}")
        raise SystemExit(1) from None

    _analyze(
        graph,
        demands,
        output_dir=args.output,
        parallelism=parallelism,
        no_sweep=args.no_sweep,
        stdout=args.stdout,
    )


if __name__ == "__main__":
    main()
