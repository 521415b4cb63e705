"""
Session component - Session identity and client classification.

Invariants:
- I1: One provider yields the same identity until end() is called
- I2: Identities are created lazily, on first use
- I3: Classification never raises; unknown signals map to Other/Unknown
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from .models import SessionIdentity


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


def generate_session_id() -> str:
    """Random session identifier."""
    return uuid4().hex


def start_session(
    now: datetime,
    id_factory: Callable[[], str] = generate_session_id,
) -> SessionIdentity:
    """Create a new identity for a session starting at `now`."""
    return SessionIdentity(session_id=id_factory(), started_at=now)


class SessionIdentityProvider:
    """
    Per-session identity holder.

    One provider instance corresponds to one browsing context. The identity
    lives only as long as the provider (or until end()), never across
    session restarts.
    """

    def __init__(
        self,
        time_port: TimePort,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        self._time_port = time_port
        self._id_factory = id_factory
        self._identity: SessionIdentity | None = None
        self._lock = threading.Lock()

    def current(self) -> SessionIdentity:
        """Return the session identity, creating it on first use."""
        with self._lock:
            if self._identity is None:
                self._identity = start_session(self._time_port.now_utc(), self._id_factory)
            return self._identity

    @property
    def has_session(self) -> bool:
        return self._identity is not None

    def end(self) -> None:
        """Forget the identity; the next current() starts a new session."""
        with self._lock:
            self._identity = None
