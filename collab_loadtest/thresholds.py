"""
Aggregate pass/fail thresholds.

Three limits decide whether a run passed, read from :file:`thresholds.yml`:

- **P95 latency (ms)** across every request
- **Error rate (%)** -- ``failures / requests * 100``
- **Check pass rate (%)** -- passing named checks over evaluated checks

The same evaluation backs the in-process gate (Locust ``quitting`` hook
setting the process exit code) and the CSV-based CI gate in
:mod:`collab_loadtest.check_thresholds`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .checks import CheckTally

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thresholds:
    max_error_rate_percent: float
    max_p95_ms: float
    min_check_pass_rate_percent: float


@dataclass(frozen=True)
class ThresholdResult:
    metric: str
    actual: float
    limit: float
    passed: bool


def load_thresholds(path: Path) -> Thresholds:
    """
    Read threshold limits from a YAML file.

    Args:
        path: Path to a YAML file containing ``max_error_rate_percent``,
            ``max_p95_ms`` and ``min_check_pass_rate_percent`` keys.

    Raises:
        ValueError: If any key is missing or non-numeric.
    """
    with path.open("r", encoding="utf-8") as handle:
        data: Any = yaml.safe_load(handle) or {}

    try:
        return Thresholds(
            max_error_rate_percent=float(data["max_error_rate_percent"]),
            max_p95_ms=float(data["max_p95_ms"]),
            min_check_pass_rate_percent=float(data["min_check_pass_rate_percent"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(
            "Thresholds file must define numeric max_error_rate_percent, "
            "max_p95_ms and min_check_pass_rate_percent"
        ) from exc


def evaluate(
    thresholds: Thresholds,
    *,
    error_rate_percent: float,
    p95_ms: float,
    check_pass_rate_percent: float | None,
) -> list[ThresholdResult]:
    """
    Compare measured values against *thresholds*.

    The error rate may reach its limit; p95 latency must stay strictly
    below its limit and the check pass rate strictly above its own.  The
    check pass rate is left out when it is ``None`` (no checks were
    evaluated, or no checks file was supplied).
    """
    results = [
        ThresholdResult(
            metric="Error rate (%)",
            actual=error_rate_percent,
            limit=thresholds.max_error_rate_percent,
            passed=error_rate_percent <= thresholds.max_error_rate_percent,
        ),
        ThresholdResult(
            metric="P95 latency (ms)",
            actual=p95_ms,
            limit=thresholds.max_p95_ms,
            passed=p95_ms < thresholds.max_p95_ms,
        ),
    ]
    if check_pass_rate_percent is not None:
        results.append(
            ThresholdResult(
                metric="Check pass rate (%)",
                actual=check_pass_rate_percent,
                limit=thresholds.min_check_pass_rate_percent,
                passed=check_pass_rate_percent > thresholds.min_check_pass_rate_percent,
            )
        )
    return results


def summary_lines(results: list[ThresholdResult]) -> list[str]:
    """Render *results* as a fixed-width table."""
    lines = [
        "-" * 60,
        f"{'Metric':<22}{'Actual':>12}{'Limit':>14}{'Status':>12}",
        "-" * 60,
    ]
    for result in results:
        status = "PASS" if result.passed else "FAIL"
        lines.append(f"{result.metric:<22}{result.actual:>12.2f}{result.limit:>14.2f}{status:>12}")
    lines.append("-" * 60)
    lines.append(f"Overall: {'PASS' if all(r.passed for r in results) else 'FAIL'}")
    return lines


def check_environment(environment: Any, tally: CheckTally, thresholds: Thresholds) -> bool:
    """
    Evaluate a finished Locust run and set its exit code on breach.

    Args:
        environment: The Locust ``Environment`` whose ``stats.total``
            holds the aggregated request statistics.
        tally: Named check counters for the same run.
        thresholds: Limits to enforce.

    Returns:
        ``True`` when every threshold passed.
    """
    total = environment.stats.total
    if total.num_requests == 0:
        logger.error("No requests were recorded; failing the run")
        environment.process_exit_code = 1
        return False

    rate = tally.pass_rate()
    results = evaluate(
        thresholds,
        error_rate_percent=total.fail_ratio * 100.0,
        p95_ms=float(total.get_response_time_percentile(0.95) or 0),
        check_pass_rate_percent=None if rate is None else rate * 100.0,
    )

    for line in summary_lines(results):
        logger.info(line)

    passed = all(result.passed for result in results)
    if not passed:
        environment.process_exit_code = 1
    return passed
