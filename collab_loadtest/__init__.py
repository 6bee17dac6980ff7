"""
Collaboration load-test scenario (Locust-based).

Drives the identity service and the project/board service through one
fixed collaboration workflow per iteration: two users are provisioned,
user A builds a workspace -> project -> board hierarchy, invites user B,
user B comments, and user A moves the board to a new stage.

The load engine (virtual-user scheduling, request statistics, CSV
output) is Locust itself.  This package supplies the scenario, its
configuration, named check tallies and threshold gates.

Key Concepts Demonstrated:
- Explicit step chain with tagged outcomes instead of nested conditionals
- Per-iteration state so concurrent virtual users never share data
- ``catch_response`` validation so Locust statistics reflect step checks
- YAML threshold gates evaluated both in-process and from CSV output
"""

from __future__ import annotations

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
