"""stickychain.core.time

Clocks disagree. Hashes must not.

This module is the *only* time helper surface in the codebase.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return an aware UTC datetime."""

    return datetime.now(tz=UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Naive timestamps are assumed UTC; aware ones are converted."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso(dt: datetime) -> str:
    """Canonical timestamp string used for hashing.

    Fixed form: UTC offset, microsecond precision. A value that survives a
    JSON round trip produces the same string on both sides.
    """

    return ensure_utc(dt).isoformat(timespec="microseconds")


def parse_dt(value: str) -> datetime:
    """Parse an ISO-8601 datetime string into an aware UTC datetime.

    Accepts:
    - `Z` suffix
    - explicit offsets
    - naive timestamps (assumed UTC)

    Raises:
        ValueError: if parsing fails.
    """

    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(v))
