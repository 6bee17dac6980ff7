"""
Per-iteration identities.

Every iteration provisions two fresh users.  Emails and provider ids
combine the virtual-user index with a short random suffix so that
concurrent users (and back-to-back runs) never collide on the identity
service's uniqueness constraints.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


def short_id() -> str:
    """Return an 8-character random suffix."""
    return uuid.uuid4().hex[:8]


@dataclass
class Identity:
    """
    One simulated person.

    Attributes:
        label: ``"A"`` (owner) or ``"B"`` (collaborator).
        email: Generated, unique email address.
        provider_id: Generated external-provider (Google) id.
        user_id: Id assigned by the identity service, once created.
        token: Raw bearer token, once obtained.
    """

    label: str
    email: str
    provider_id: str
    user_id: str | None = None
    token: str | None = None


def make_identity(label: str, vu_id: int, suffix: str) -> Identity:
    """Build identity *label* for virtual user *vu_id*."""
    return Identity(
        label=label,
        email=f"user{label}_{vu_id}_{suffix}@test.com",
        provider_id=f"google{label}_{vu_id}_{suffix}",
    )


def identity_pair(vu_id: int, suffix: str | None = None) -> tuple[Identity, Identity]:
    """
    Generate the owner/collaborator pair for one iteration.

    Both identities share the iteration suffix, which keeps them easy to
    correlate in service logs.
    """
    suffix = suffix or short_id()
    return make_identity("A", vu_id, suffix), make_identity("B", vu_id, suffix)
