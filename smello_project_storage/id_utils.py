"""ID generation for project storage.

Project IDs: proj_{epoch_millis}_{9 base36 characters}

Cloud documents created during migration keep the local id, so both
stores share this format.
"""

from __future__ import annotations

import secrets
import time

PROJECT_ID_PREFIX = "proj_"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_SUFFIX_LENGTH = 9


def _random_base36(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_project_id(now_ms: int | None = None) -> str:
    """Generate a new project ID."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{PROJECT_ID_PREFIX}{now_ms}_{_random_base36(_SUFFIX_LENGTH)}"
