"""
Client-side session cache.

A client keeps the session returned by the auth endpoints and reuses it on
every protected action. The cache is an explicit dependency (``load`` /
``save`` / ``clear``) instead of ambient global storage, and it refuses to
hand out a session whose ``expires_at`` has passed, so a caller can react to
expiry without asking the server.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from app.schemas.auth import SessionOut

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(session: SessionOut, now: datetime) -> bool:
    expires_at = session.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


class SessionStore(Protocol):
    def load(self) -> Optional[SessionOut]: ...

    def save(self, session: SessionOut) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    """Process-local store, mostly for tests and scripts."""

    def __init__(self, clock: Clock = _utcnow):
        self._clock = clock
        self._session: Optional[SessionOut] = None

    def load(self) -> Optional[SessionOut]:
        if self._session is None:
            return None
        if is_expired(self._session, self._clock()):
            self.clear()
            return None
        return self._session

    def save(self, session: SessionOut) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class JsonFileSessionStore:
    """Persists the session as JSON on disk, like a browser's local storage."""

    def __init__(self, path, clock: Clock = _utcnow):
        self.path = Path(path)
        self._clock = clock

    def load(self) -> Optional[SessionOut]:
        if not self.path.exists():
            return None
        try:
            session = SessionOut.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError):
            logger.warning("[SESSION] Discarding unreadable cached session at %s", self.path)
            self.clear()
            return None
        if is_expired(session, self._clock()):
            self.clear()
            return None
        return session

    def save(self, session: SessionOut) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(session.model_dump_json(), encoding="utf-8")
        tmp_path.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
