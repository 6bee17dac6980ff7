"""
Unit tests for the Locust user wiring.

Instantiates :class:`CollaborationUser` inside a real Locust
``Environment`` (no runner, no network) and swaps its scenario client
for one backed by a fake session.
"""

from __future__ import annotations

import pytest
from locust.env import Environment

from collab_loadtest.config import TestingConfig
from collab_loadtest.users import CollaborationUser
from collab_loadtest.workflow import ScenarioClient, StepOutcome
from shared.test_helpers import FakeSession

pytestmark = pytest.mark.unit


@pytest.fixture
def environment():
    return Environment(user_classes=[CollaborationUser])


def test_each_user_gets_a_distinct_index(environment):
    first = CollaborationUser(environment)
    second = CollaborationUser(environment)

    first.on_start()
    second.on_start()

    assert first.vu_id != second.vu_id
    assert first.vu_id > 0


def test_user_runs_under_testing_config(environment):
    user = CollaborationUser(environment)
    user.on_start()

    assert user.settings is TestingConfig
    assert user.scenario.session is user.client


def test_iteration_uses_fresh_identities(environment, happy_routes, tally):
    """Test that consecutive iterations of one user provision new users each time."""
    # Arrange
    user = CollaborationUser(environment)
    user.on_start()
    session = FakeSession(happy_routes)
    user.scenario = ScenarioClient(session, TestingConfig, tally=tally, pause=lambda _s: None)

    # Act
    first = user.run_iteration()
    second = user.run_iteration()

    # Assert
    assert first.outcome_of("MoveBoard") is StepOutcome.PASSED
    assert first.vu_id == second.vu_id == user.vu_id
    assert first.user_a.email != second.user_a.email
    assert first.user_a.email.startswith(f"userA_{user.vu_id}_")
