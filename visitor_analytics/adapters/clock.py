"""
Clock adapters.

Implement the TimePort interface used by the session, timeframe and
analytics components.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class SystemClock:
    """Wall-clock time in UTC."""

    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """
    Clock that returns a fixed time.

    Useful for deterministic testing.
    """

    def __init__(self, frozen_utc: datetime) -> None:
        if frozen_utc.tzinfo is None:
            frozen_utc = frozen_utc.replace(tzinfo=UTC)
        self._frozen_utc = frozen_utc.astimezone(UTC)

    def now_utc(self) -> datetime:
        return self._frozen_utc

    def advance(self, delta: timedelta) -> None:
        """Advance frozen time by delta (for testing)."""
        self._frozen_utc = self._frozen_utc + delta

    def set(self, utc_dt: datetime) -> None:
        self._frozen_utc = utc_dt.astimezone(UTC)


def resolve_timezone(tz_name: str | None) -> tzinfo:
    """
    Look up an IANA zone for label display.

    Empty names and "UTC" give UTC. Unknown names raise ValueError.
    """
    if not tz_name or tz_name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {tz_name}") from e
