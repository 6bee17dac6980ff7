"""
Locust user class for the collaboration scenario.

:class:`CollaborationUser` runs the whole workflow as a single Locust
task, so one task invocation is one iteration.  Pacing comes from the
think-time pause after every step rather than from ``wait_time``.

Both services are addressed with absolute URLs, which lets a single
``HttpSession`` (and its connection pool) serve both of them while the
per-step ``name`` tags keep their statistics apart.
"""

from __future__ import annotations

import itertools
import logging

from locust import HttpUser, constant, tag, task

from .config import get_config
from .steps import STEPS
from .workflow import IterationState, ScenarioClient, run_steps

logger = logging.getLogger(__name__)

SETTINGS = get_config()


@tag("collaboration")
class CollaborationUser(HttpUser):
    """
    Simulated person who repeatedly walks the collaboration workflow.

    Attributes:
        vu_id: 1-based index of this virtual user within the process,
            offset by the worker index in distributed runs.
        scenario: Client wrapper shared by every iteration of this user.
    """

    host = SETTINGS.USER_API_BASE_URL
    wait_time = constant(0)
    settings = SETTINGS

    # Class-level counter so each spawned user gets a distinct index.
    _vu_counter = itertools.count(1)

    vu_id: int
    scenario: ScenarioClient

    def on_start(self) -> None:
        """Assign the virtual-user index and build the scenario client."""
        worker_index = getattr(self.environment.runner, "worker_index", 0) or 0
        self.vu_id = worker_index * 100_000 + next(self._vu_counter)
        self.scenario = ScenarioClient(self.client, self.settings)

    @task
    def collaboration_flow(self) -> None:
        """Run one full iteration with freshly generated identities."""
        self.run_iteration()

    def run_iteration(self, suffix: str | None = None) -> IterationState:
        state = run_steps(self.scenario, IterationState.new(self.vu_id, suffix), STEPS)
        logger.debug(
            "VU %s: iteration finished after %d step(s)%s",
            self.vu_id,
            len(state.results),
            " (halted)" if state.halted else "",
        )
        return state
