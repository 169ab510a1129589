"""Timestamp conversion boundary.

Every timestamp that leaves this package on a Project is an ISO-8601 string
in UTC. Cloud documents carry store-native timestamps of the form
``{"seconds": int, "nanos": int}``; older payloads may also hold epoch
numbers, datetimes or ISO strings. All read paths convert through
:func:`to_iso8601`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string."""
    return utc_now().isoformat()


def to_store_timestamp(value: datetime | None = None) -> dict[str, int]:
    """Build a store-native ``{seconds, nanos}`` timestamp."""
    value = value or utc_now()
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    seconds = int(value.timestamp())
    nanos = value.microsecond * 1000
    return {"seconds": seconds, "nanos": nanos}


def parse_timestamp(value: Any) -> datetime | None:
    """Parse any supported timestamp representation into an aware datetime.

    Supported inputs:
        - datetime (naive values are taken as UTC)
        - ``{"seconds": s, "nanos": n}`` or ``{"seconds": s, "nanoseconds": n}``
          mappings, and objects exposing ``seconds``/``nanos`` attributes
        - int/float epoch seconds
        - ISO-8601 strings (a trailing ``Z`` is accepted)

    Returns:
        Aware UTC datetime, or None if value is None or empty.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    if isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, UTC)

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Unsupported timestamp value: {value!r}") from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanos", value.get("nanoseconds", value.get("_nanoseconds", 0)))
    else:
        seconds = getattr(value, "seconds", None)
        nanos = getattr(value, "nanos", getattr(value, "nanoseconds", 0))

    if seconds is None:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    base = datetime.fromtimestamp(int(seconds), UTC)
    return base.replace(microsecond=int(nanos or 0) // 1000)


def to_iso8601(value: Any, default: str | None = None) -> str | None:
    """Convert a timestamp in any supported form to an ISO-8601 string.

    Args:
        value: Timestamp in any form accepted by :func:`parse_timestamp`
        default: Returned when value is None or empty

    Returns:
        ISO-8601 string in UTC, or default.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return default
    return parsed.astimezone(UTC).isoformat()


def latest_iso(current: str | None, previous: str | None) -> str:
    """Return whichever of two ISO timestamps is later.

    Used to keep ``updated_at`` monotonically non-decreasing when the
    local clock is behind a previously stored value. An unparseable
    previous value is treated as absent.
    """
    current_dt = parse_timestamp(current) or utc_now()
    try:
        previous_dt = parse_timestamp(previous)
    except ValueError:
        previous_dt = None
    if previous_dt is not None and previous_dt > current_dt:
        return previous_dt.astimezone(UTC).isoformat()
    return current_dt.astimezone(UTC).isoformat()
