"""
Named check tallies.

Locust tracks requests, not assertions.  Every workflow step therefore
records a named pass/fail/skip outcome here in addition to marking its
request as success or failure.  The tally is aggregated across all
virtual users (and, in distributed runs, merged from workers on the
master) so the check pass rate can be gated at the end of a run.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CSV_FIELDS = ("Name", "Passes", "Failures", "Skips")


@dataclass
class CheckCount:
    passes: int = 0
    failures: int = 0
    skips: int = 0

    @property
    def attempts(self) -> int:
        return self.passes + self.failures


class CheckTally:
    """
    Running counters keyed by check name.

    Insertion order is preserved, so summaries list checks in workflow
    order as long as the first iteration reaches them in order.
    """

    def __init__(self) -> None:
        self._counts: dict[str, CheckCount] = {}

    def _entry(self, name: str) -> CheckCount:
        if name not in self._counts:
            self._counts[name] = CheckCount()
        return self._counts[name]

    def record(self, name: str, passed: bool) -> None:
        """Count one evaluated check."""
        entry = self._entry(name)
        if passed:
            entry.passes += 1
        else:
            entry.failures += 1

    def skip(self, name: str) -> None:
        """Count one check whose step was skipped; excluded from the pass rate."""
        self._entry(name).skips += 1

    def reset(self) -> None:
        self._counts.clear()

    def counts(self) -> dict[str, CheckCount]:
        return dict(self._counts)

    @property
    def passes(self) -> int:
        return sum(entry.passes for entry in self._counts.values())

    @property
    def failures(self) -> int:
        return sum(entry.failures for entry in self._counts.values())

    def pass_rate(self) -> float | None:
        """
        Fraction of evaluated checks that passed.

        Returns:
            A value in ``[0, 1]``, or ``None`` when no check has been
            evaluated yet.
        """
        attempts = self.passes + self.failures
        if attempts == 0:
            return None
        return self.passes / attempts

    def to_dict(self) -> dict[str, list[int]]:
        """Serialise counters for ``report_to_master`` payloads."""
        return {
            name: [entry.passes, entry.failures, entry.skips]
            for name, entry in self._counts.items()
        }

    def drain(self) -> dict[str, list[int]]:
        """Return the serialised counters and reset them (worker side)."""
        payload = self.to_dict()
        self.reset()
        return payload

    def merge(self, payload: dict[str, list[int]]) -> None:
        """Add counters received from a worker report (master side)."""
        for name, values in payload.items():
            passes, failures, skips = values
            entry = self._entry(name)
            entry.passes += passes
            entry.failures += failures
            entry.skips += skips

    def log_summary(self) -> None:
        """Log one line per check plus the overall pass rate."""
        for name, entry in self._counts.items():
            logger.info(
                "[CHECK] %s: passes=%d failures=%d skips=%d",
                name,
                entry.passes,
                entry.failures,
                entry.skips,
            )
        rate = self.pass_rate()
        if rate is None:
            logger.info("[CHECK] no checks evaluated")
        else:
            logger.info("[CHECK] pass rate %.2f%% (%d/%d)", rate * 100, self.passes, self.passes + self.failures)

    def write_csv(self, path: Path) -> None:
        """Write counters in the ``Name, Passes, Failures, Skips`` layout."""
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(CSV_FIELDS)
            for name, entry in self._counts.items():
                writer.writerow([name, entry.passes, entry.failures, entry.skips])


def load_checks_csv(path: Path) -> CheckTally:
    """
    Rebuild a tally from a file written by :meth:`CheckTally.write_csv`.

    Raises:
        ValueError: If a row is missing a column or holds a non-integer.
    """
    tally = CheckTally()
    with path.open("r", encoding="utf-8", newline="") as handle:
        for row in csv.DictReader(handle):
            try:
                tally.merge(
                    {
                        row["Name"]: [
                            int(row["Passes"]),
                            int(row["Failures"]),
                            int(row["Skips"]),
                        ]
                    }
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Malformed checks CSV row: {row}") from exc
    return tally


# Process-wide tally fed by every virtual user in this Locust process.
CHECKS = CheckTally()
