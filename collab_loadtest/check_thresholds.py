"""
CI gate over the CSV files of a headless collaboration run.

``locust --csv <prefix>`` leaves ``<prefix>_stats.csv`` behind, and the
scenario adds ``<prefix>_checks.csv``.  This command reads the run totals
from the first, optionally the named-check counts from the second, and
applies the limits in :file:`thresholds.yml`.

The exit status tells a breach apart from a broken input:

- ``0`` -- every limit held
- ``1`` -- a limit was breached
- ``2`` -- a file was missing or unreadable, or the run recorded nothing
"""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path

from .checks import load_checks_csv
from .thresholds import evaluate, load_thresholds, summary_lines

EXIT_PASS = 0
EXIT_THRESHOLD_BREACH = 1
EXIT_SCRIPT_ERROR = 2

# Locust has renamed the p95 column over the years.
P95_COLUMNS = ("95%", "95%ile", "95th percentile", "p95")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the threshold checker."""
    parser = argparse.ArgumentParser(
        description="Check Locust stats CSV against performance thresholds."
    )
    parser.add_argument(
        "--stats",
        required=True,
        type=Path,
        help="Path to Locust *_stats.csv file",
    )
    parser.add_argument(
        "--checks",
        type=Path,
        default=None,
        help="Path to the scenario's *_checks.csv file",
    )
    parser.add_argument(
        "--thresholds",
        type=Path,
        default=Path("thresholds.yml"),
        help="Path to thresholds YAML file",
    )
    return parser.parse_args(argv)


def _number(row: dict[str, str], column: str) -> float:
    raw = (row.get(column) or "").strip().rstrip("%")
    if not raw:
        raise ValueError(f"Stats CSV has no value for '{column}'")
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Stats CSV value for '{column}' is not a number: {raw!r}") from exc


def read_run_totals(stats_path: Path) -> tuple[float, float]:
    """
    Return ``(error_rate_percent, p95_ms)`` for the whole run.

    Both come from the ``Aggregated`` row that Locust appends after the
    per-request rows of ``<prefix>_stats.csv``.

    Raises:
        ValueError: If the row or one of its columns is missing, or the
            run recorded no requests.
    """
    with stats_path.open("r", encoding="utf-8", newline="") as handle:
        totals = next(
            (
                row
                for row in csv.DictReader(handle)
                if "Aggregated" in (row.get("Name"), row.get("Type"))
            ),
            None,
        )
    if totals is None:
        raise ValueError("Could not find 'Aggregated' row in stats CSV")

    requests = _number(totals, "Request Count")
    if requests <= 0:
        raise ValueError("Stats CSV recorded no requests")
    error_rate = _number(totals, "Failure Count") / requests * 100.0

    column = next((name for name in P95_COLUMNS if totals.get(name)), None)
    if column is None:
        raise ValueError("Could not find p95 column in stats CSV")
    return error_rate, _number(totals, column)


def main(argv: list[str] | None = None) -> int:
    """
    Gate a finished run on its CSV output and print the summary table.

    Returns:
        One of the ``EXIT_*`` codes.
    """
    args = parse_args(argv)

    try:
        thresholds = load_thresholds(args.thresholds)
        error_rate, p95_ms = read_run_totals(args.stats)

        check_rate = None
        if args.checks is not None:
            rate = load_checks_csv(args.checks).pass_rate()
            if rate is None:
                raise ValueError("Checks CSV contains no evaluated checks")
            check_rate = rate * 100.0

        results = evaluate(
            thresholds,
            error_rate_percent=error_rate,
            p95_ms=p95_ms,
            check_pass_rate_percent=check_rate,
        )
        print("Performance Threshold Check")
        for line in summary_lines(results):
            print(line)

        passed = all(result.passed for result in results)
        return EXIT_PASS if passed else EXIT_THRESHOLD_BREACH
    except Exception as exc:
        print(f"Threshold check failed: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
