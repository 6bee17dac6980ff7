"""
Scenario workflow engine.

An iteration is a linear chain of named steps.  Each step declares the
state it needs (ids and tokens produced by earlier steps) and what to
do when that state is missing:

1. ``HALTED`` -- the step is structurally impossible, so the iteration
   ends here.  Nothing is recorded as a failure.
2. ``SKIPPED`` -- the step is optional; a skip is tallied and the chain
   continues.

Steps that do run return a tagged :class:`StepResult` (``PASSED`` or
``FAILED``), so every precondition is a pure function of
:class:`IterationState` rather than a nest of ``if`` guards.

Key Concepts Demonstrated:
- Result-chain modelling of dependent HTTP calls
- ``catch_response=True`` so the Locust request row mirrors the step check
- Failures stay local to one iteration; nothing is retried or raised
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from operator import attrgetter
from typing import Any

from locust.clients import HttpSession

from .checks import CHECKS, CheckTally
from .config import Config
from .helpers import extract_field, preview, safe_json
from .identity import Identity, identity_pair, short_id

logger = logging.getLogger(__name__)


class StepOutcome(str, Enum):
    """Tagged outcome of a single step."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    HALTED = "halted"


@dataclass
class StepResult:
    step: str
    outcome: StepOutcome
    status: int | None = None
    produced: dict[str, str] = field(default_factory=dict)


@dataclass
class IterationState:
    """
    Everything one iteration knows.

    Created fresh for every iteration and discarded afterwards; no
    attribute is ever shared between virtual users or iterations.
    """

    vu_id: int
    suffix: str
    user_a: Identity
    user_b: Identity
    workspace_id: str | None = None
    project_id: str | None = None
    board_id: str | None = None
    comment_id: str | None = None
    results: list[StepResult] = field(default_factory=list)

    @classmethod
    def new(cls, vu_id: int, suffix: str | None = None) -> IterationState:
        suffix = suffix or short_id()
        user_a, user_b = identity_pair(vu_id, suffix)
        return cls(vu_id=vu_id, suffix=suffix, user_a=user_a, user_b=user_b)

    def missing(self, requires: tuple[str, ...]) -> list[str]:
        """Return the dotted attribute paths in *requires* that are still unset."""
        return [path for path in requires if not attrgetter(path)(self)]

    def outcome_of(self, step_name: str) -> StepOutcome | None:
        for result in self.results:
            if result.step == step_name:
                return result.outcome
        return None

    @property
    def halted(self) -> bool:
        return bool(self.results) and self.results[-1].outcome is StepOutcome.HALTED


@dataclass
class Reply:
    """What a step needs from a finished request."""

    status: int
    text: str
    body: dict[str, Any] | None
    passed: bool


@dataclass(frozen=True)
class Step:
    """
    One link of the workflow chain.

    Attributes:
        number: 1-based position, used in check names and log lines.
        name: Stable identifier (``CreateUserA``).
        title: Human-readable check title (``User A Created``).
        request_name: Locust stats name for the step's request.
        requires: Dotted :class:`IterationState` paths that must be set.
        on_missing: ``HALTED`` or ``SKIPPED``.
        run: Callable performing the request and updating state.
    """

    number: int
    name: str
    title: str
    request_name: str
    run: Callable[[ScenarioClient, IterationState, Step], StepResult]
    requires: tuple[str, ...] = ()
    on_missing: StepOutcome = StepOutcome.HALTED

    @property
    def check_name(self) -> str:
        return f"{self.number}. {self.title}"


class ScenarioClient:
    """
    Thin wrapper around a Locust ``HttpSession`` shared by all steps.

    Owns the base URLs, the check tally and the think-time pause so that
    step functions only describe *what* to send and *what* to keep.
    """

    def __init__(
        self,
        session: HttpSession,
        settings: type[Config],
        tally: CheckTally = CHECKS,
        pause: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.session = session
        self.settings = settings
        self.tally = tally
        self.pause = pause

    def user_url(self, path: str) -> str:
        return f"{self.settings.USER_API_BASE_URL.rstrip('/')}{path}"

    def project_url(self, path: str) -> str:
        return f"{self.settings.PROJECT_API_BASE_URL.rstrip('/')}{path}"

    def think(self) -> None:
        if self.settings.THINK_TIME_SECONDS > 0:
            self.pause(self.settings.THINK_TIME_SECONDS)

    def call(
        self,
        step: Step,
        state: IterationState,
        method: str,
        url: str,
        *,
        expected: tuple[int, ...],
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        body_check: Callable[[str], str | None] | None = None,
    ) -> Reply:
        """
        Send one request and evaluate the step's success predicate.

        The predicate is the expected status set, optionally followed by
        *body_check*, which returns a failure reason or ``None``.  The
        outcome is reported three ways: the Locust request is marked
        success/failure, the named check is tallied, and a failed
        predicate is logged with the raw response body.

        Args:
            step: The step issuing the request.
            state: Current iteration state (for the VU index in logs).
            method: HTTP method.
            url: Absolute URL on one of the two services.
            expected: Status codes that count as success.
            json: Optional JSON request body.
            headers: Optional request headers.
            body_check: Optional extra predicate over the raw body.

        Returns:
            A :class:`Reply`; ``body`` is only parsed for passing replies.
        """
        kwargs: dict[str, Any] = {"timeout": self.settings.REQUEST_TIMEOUT}
        if json is not None:
            kwargs["json"] = json
        if headers is not None:
            kwargs["headers"] = headers

        with self.session.request(
            method,
            url,
            name=step.request_name,
            catch_response=True,
            **kwargs,
        ) as response:
            status = response.status_code
            text = response.text or ""

            problem: str | None = None
            if status not in expected:
                problem = f"Expected {' or '.join(str(code) for code in expected)}, got {status}"
            elif body_check is not None:
                problem = body_check(text)

            if problem is None:
                response.success()
                body = safe_json(response)
            else:
                response.failure(problem)
                body = None
                logger.error(
                    "VU %s: [ERROR] Step %d (%s) failed. Status: %s. Response: %s. Reason: %s",
                    state.vu_id,
                    step.number,
                    step.title,
                    status,
                    preview(text),
                    problem,
                )

        passed = problem is None
        self.tally.record(step.check_name, passed)
        return Reply(status=status, text=text, body=body, passed=passed)


def capture_id(reply: Reply, step: Step, state: IterationState, *path: str) -> str | None:
    """
    Pull an id out of a passing reply, logging instead of raising.

    A missing id simply stays ``None``; the next step's precondition
    then halts or skips the rest of the chain.
    """
    if not reply.passed:
        return None

    if reply.body is None:
        logger.error(
            "VU %s: [ERROR] Step %d: Failed to parse JSON. Response: %s",
            state.vu_id,
            step.number,
            preview(reply.text),
        )
        return None

    value = extract_field(reply.body, *path)
    if value is None:
        logger.error(
            "VU %s: [ERROR] Step %d: Failed to extract '%s'. Response: %s",
            state.vu_id,
            step.number,
            ".".join(path),
            preview(reply.text),
        )
    return value


def result_for(step: Step, reply: Reply, **produced: str | None) -> StepResult:
    """Build a ``PASSED``/``FAILED`` result, keeping only ids actually obtained."""
    return StepResult(
        step=step.name,
        outcome=StepOutcome.PASSED if reply.passed else StepOutcome.FAILED,
        status=reply.status,
        produced={key: value for key, value in produced.items() if value},
    )


def skip(client: ScenarioClient, step: Step, state: IterationState, reason: str) -> StepResult:
    """Record *step* as skipped; the chain continues."""
    logger.error("VU %s: [SKIP] Step %d skipped (%s).", state.vu_id, step.number, reason)
    client.tally.skip(step.check_name)
    return StepResult(step=step.name, outcome=StepOutcome.SKIPPED)


def run_steps(
    client: ScenarioClient,
    state: IterationState,
    steps: tuple[Step, ...],
) -> IterationState:
    """
    Execute *steps* in order against *state*.

    Returns:
        The same *state*, with one :class:`StepResult` per step reached.
        When a ``HALTED`` result is present it is always the last entry.
    """
    for step in steps:
        missing = state.missing(step.requires)
        if missing:
            if step.on_missing is StepOutcome.SKIPPED:
                state.results.append(
                    skip(client, step, state, f"{', '.join(missing)} missing")
                )
                client.think()
                continue

            logger.debug(
                "VU %s: Step %d (%s) not attempted, missing %s; ending iteration",
                state.vu_id,
                step.number,
                step.title,
                ", ".join(missing),
            )
            state.results.append(StepResult(step=step.name, outcome=StepOutcome.HALTED))
            break

        state.results.append(step.run(client, state, step))
        client.think()

    return state
