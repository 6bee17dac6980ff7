"""
Helper utilities for the collaboration scenario.

Provides the small building blocks every step relies on: header
construction, tolerant JSON parsing and id extraction.  Keeping these in
a shared module means the two services' response conventions are
described in exactly one place.

Key Concepts Demonstrated:
- Tolerant response parsing that never raises into a virtual user
- Explicit field paths so top-level vs. nested ``data`` ids stay distinct
"""

from __future__ import annotations

from typing import Any

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def safe_json(response: Any) -> dict[str, Any] | None:
    """
    Return response JSON as a dict, or ``None`` if parsing fails.

    Locust responses may contain non-JSON bodies (e.g. on 5xx errors or
    gateway timeouts).  Using this wrapper prevents ``ValueError`` from
    propagating into steps where it would abort the virtual user.

    Args:
        response: A Locust/requests ``Response`` object.

    Returns:
        The parsed JSON body as a dictionary, or ``None`` if parsing
        fails or the top-level value is not an object.
    """
    try:
        data = response.json()
    except ValueError:
        return None

    if isinstance(data, dict):
        return data
    return None


def extract_field(body: dict[str, Any] | None, *path: str) -> str | None:
    """
    Walk *path* through a parsed body and return the id found there.

    The identity service returns ids at the top level (``userId``) while
    the project service wraps them in a ``data`` object
    (``data.projectId``), so callers always spell out the full path.

    Returns:
        The value as a string, or ``None`` when any segment is missing
        or the final value is empty.
    """
    current: Any = body
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)

    if current is None or current == "":
        return None
    if isinstance(current, (dict, list)):
        return None
    return str(current)


def auth_header(token: str) -> dict[str, str]:
    """
    Build standard bearer auth headers for API requests.

    The token endpoint returns a bare JWT; the ``Bearer`` prefix is added
    here rather than stored with the token.

    Args:
        token: A JWT string.

    Returns:
        A dictionary suitable for passing as ``headers`` to Locust
        request methods.
    """
    return {"Authorization": f"Bearer {token}", **JSON_HEADERS}


def preview(text: str | None, limit: int = 500) -> str:
    """Trim a response body for log output."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...(truncated)"
