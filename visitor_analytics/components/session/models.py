"""
Session component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SessionIdentity:
    """Identity of one browsing session, created once at session start."""

    session_id: str
    started_at: datetime


@dataclass(frozen=True)
class ClientContext:
    """Client signals captured alongside a page view."""

    user_agent: str | None = None
    referrer: str | None = None
    time_zone: str | None = None


@dataclass(frozen=True)
class ClientProfile:
    """Classified client fields stamped onto each event."""

    browser: str
    os: str
    device: str
    country: str
