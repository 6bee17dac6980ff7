"""
Shared pytest fixtures for the collaboration load-test suite.

Builds :class:`~shared.test_helpers.FakeSession` route tables so that
workflow steps can be exercised without any network traffic.  Routes
map ``(method, path)`` pairs to scripted responses; every request the
workflow issues is captured for later assertions.

Key SDET Concepts Demonstrated:
- Lightweight fakes that satisfy the ``catch_response`` protocol
- Scripted response sequences for multi-call endpoints
- Fresh check tallies per test for isolation
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest

os.environ["LOADTEST_ENV"] = "testing"

from collab_loadtest.checks import CheckTally
from collab_loadtest.config import TestingConfig
from collab_loadtest.workflow import ScenarioClient
from shared.test_helpers import TOKEN_A, TOKEN_B, FakeSession, respond


@pytest.fixture
def happy_routes() -> dict[tuple[str, str], Any]:
    """
    Provide a route table on which every step succeeds.

    User A is created as ``u1`` and user B as ``u2``; projects and
    boards return their ids nested under ``data``.
    """
    return {
        ("POST", "/api/users"): [respond(201, {"userId": "u1"}), respond(201, {"userId": "u2"})],
        ("GET", "/api/users/test/u1"): respond(200, text=TOKEN_A),
        ("GET", "/api/users/test/u2"): respond(200, text=TOKEN_B),
        ("POST", "/api/workspaces/create"): respond(201, {"workspaceId": "w1"}),
        ("POST", "/api/projects"): respond(201, {"data": {"projectId": "p1"}}),
        ("POST", "/api/boards"): respond(201, {"data": {"boardId": "b1"}}),
        ("POST", "/api/workspaces/w1/members/invite"): respond(200, {"invited": True}),
        ("GET", "/api/projects/p1/members"): respond(200, {"data": []}),
        ("POST", "/api/participants"): respond(201, {"data": {"added": 1}}),
        ("POST", "/api/comments"): respond(201, {"data": {"commentId": "c1"}}),
        ("PUT", "/api/boards/b1/move"): respond(200, {"data": {"boardId": "b1"}}),
    }


@pytest.fixture
def tally() -> CheckTally:
    """Provide an isolated check tally for one test."""
    return CheckTally()


@pytest.fixture
def make_scenario(tally) -> Callable[..., tuple[ScenarioClient, FakeSession]]:
    """
    Factory fixture building a ``ScenarioClient`` over a ``FakeSession``.

    Example:
        def test_something(make_scenario, happy_routes):
            client, session = make_scenario(happy_routes)
    """

    def _make(
        routes: dict[tuple[str, str], Any],
        settings: type[TestingConfig] = TestingConfig,
        pause: Callable[[float], Any] | None = None,
    ) -> tuple[ScenarioClient, FakeSession]:
        session = FakeSession(routes)
        client = ScenarioClient(session, settings, tally=tally, pause=pause or (lambda _s: None))
        return client, session

    return _make
