"""
Locust entrypoint for the collaboration load test.

This is the file that the ``locust`` CLI discovers and loads.  It
exposes :class:`CollaborationUser` and wires the event listeners that
turn per-step checks into run-level reporting:

- ``test_start`` resets the named check tally
- ``report_to_master`` / ``worker_report`` merge worker tallies on the
  master in distributed runs
- ``test_stop`` logs the per-check summary and writes
  ``<csv prefix>_checks.csv`` when ``--csv`` is set
- ``quitting`` enforces :file:`thresholds.yml` via the process exit code

Usage examples::

    # Headless run with the options from locust.conf:
    locust --config locust.conf

    # Override the services under test:
    USER_API_BASE_URL=https://users.example.com \\
    PROJECT_API_BASE_URL=https://projects.example.com \\
    locust -f locustfile.py --headless -u 100 -r 20 -t 1m --csv results
"""

from __future__ import annotations

import logging
from pathlib import Path

from locust import events
from locust.runners import WorkerRunner

from collab_loadtest.checks import CHECKS
from collab_loadtest.thresholds import check_environment, load_thresholds
from collab_loadtest.users import SETTINGS, CollaborationUser

__all__ = ["CollaborationUser"]

logger = logging.getLogger(__name__)


@events.init.add_listener
def _log_targets(environment, **_kwargs):
    logger.info(
        "Collaboration scenario: users=%s projects=%s think_time=%ss",
        SETTINGS.USER_API_BASE_URL,
        SETTINGS.PROJECT_API_BASE_URL,
        SETTINGS.THINK_TIME_SECONDS,
    )


@events.test_start.add_listener
def _reset_checks(environment, **_kwargs):
    CHECKS.reset()


@events.report_to_master.add_listener
def _send_checks(client_id, data, **_kwargs):
    data["checks"] = CHECKS.drain()


@events.worker_report.add_listener
def _merge_checks(client_id, data, **_kwargs):
    CHECKS.merge(data.get("checks", {}))


@events.test_stop.add_listener
def _report_checks(environment, **_kwargs):
    if isinstance(environment.runner, WorkerRunner):
        return

    CHECKS.log_summary()
    options = environment.parsed_options
    csv_prefix = getattr(options, "csv_prefix", None) if options else None
    if csv_prefix:
        path = Path(f"{csv_prefix}_checks.csv")
        CHECKS.write_csv(path)
        logger.info("Wrote check tallies to %s", path)


@events.quitting.add_listener
def _enforce_thresholds(environment, **_kwargs):
    if isinstance(environment.runner, WorkerRunner):
        return

    try:
        thresholds = load_thresholds(Path(SETTINGS.THRESHOLDS_FILE))
    except (OSError, ValueError) as exc:
        logger.error("Cannot load thresholds from %s: %s", SETTINGS.THRESHOLDS_FILE, exc)
        environment.process_exit_code = 2
        return

    check_environment(environment, CHECKS, thresholds)
