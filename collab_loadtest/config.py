"""
Load-test configuration.

Defines environment-specific configuration classes for the collaboration
scenario.  Each class captures the base URLs of the two services under
test and the pacing/threshold settings the scenario reads at runtime.
The ``get_config`` factory selects the right class based on the
``LOADTEST_ENV`` environment variable (or an explicit key).

Virtual-user count, spawn rate and run time are Locust run options and
live in :file:`locust.conf` rather than here.
"""

from __future__ import annotations

import os


def _env_flag(name: str, default: str) -> bool:
    """Interpret an environment variable as a boolean flag."""
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """
    Base (shared) configuration for the scenario.

    All environment-specific classes inherit from ``Config`` so that
    common defaults only need to be stated once.
    """

    # Identity service: users, test tokens, workspaces and invitations.
    USER_API_BASE_URL: str = os.environ.get("USER_API_BASE_URL", "http://localhost:8080")

    # Project service: projects, boards, participants and comments.
    PROJECT_API_BASE_URL: str = os.environ.get("PROJECT_API_BASE_URL", "http://localhost:8081")

    # Pause after every step to emulate human think-time.
    THINK_TIME_SECONDS: float = float(os.environ.get("THINK_TIME_SECONDS", "1"))

    # When disabled, step 2 is recorded as skipped and the iteration stops
    # before workspace creation.
    FETCH_TOKEN_A: bool = _env_flag("FETCH_TOKEN_A", "true")

    REQUEST_TIMEOUT: int = int(os.environ.get("REQUEST_TIMEOUT", "10"))

    THRESHOLDS_FILE: str = os.environ.get("THRESHOLDS_FILE", "thresholds.yml")

    IDENTITY_PROVIDER: str = "google"
    MEMBER_ROLE: str = "MEMBER"
    BOARD_GROUP_BY_FIELD: str = "stage"
    BOARD_TARGET_VALUE: str = "in_progress"


class DevelopmentConfig(Config):
    """Local runs against services on localhost."""


class TestingConfig(Config):
    """
    Test-suite overrides.

    Points service URLs at non-routable test hosts so that unit tests
    never accidentally hit real services, and removes think-time so
    iterations complete instantly.
    """

    USER_API_BASE_URL: str = os.environ.get("TEST_USER_API_BASE_URL", "http://users.test")
    PROJECT_API_BASE_URL: str = os.environ.get("TEST_PROJECT_API_BASE_URL", "http://projects.test")
    THINK_TIME_SECONDS: float = 0.0
    REQUEST_TIMEOUT: int = 1


class ProductionConfig(Config):
    """
    Runs against a deployed environment.

    All URLs are expected to come from environment variables set by the
    CI job that launches Locust.
    """


# Lookup table mapping environment name strings to their config classes.
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the configuration class for the given environment.

    Args:
        env: One of ``"development"``, ``"testing"``, or
            ``"production"``.  When *None*, the ``LOADTEST_ENV``
            environment variable is consulted, falling back to
            ``"development"`` if unset.

    Returns:
        The ``Config`` subclass matching the requested environment,
        or ``DevelopmentConfig`` if the key is unrecognised.
    """
    if env is None:
        env = os.environ.get("LOADTEST_ENV", "development")
    return config.get(env, config["default"])
