"""In-memory cookie sessions with one-shot flash messages.

The cookie carries ``<session_id>.<hmac>`` where the HMAC is keyed by the
session secret, so a forged or tampered cookie never reaches the store.
Sessions are ephemeral: a restart (or a fresh random secret) means re-login.
"""

import asyncio
import contextlib
import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

CLEANUP_INTERVAL_SECONDS = 300  # 5 minutes
DEFAULT_SESSION_TTL_SECONDS = 86400  # 24 hours

USER_ID_KEY = "user_id"
FLASHES_KEY = "_flashes"


@dataclass
class Session:
    """Server-side session: an opaque id mapping to a small value bag."""

    session_id: str
    created_at: float
    expires_at: float
    values: Dict[str, Any] = field(default_factory=dict)


class SessionStore:
    """Issue, sign and look up cookie sessions.

    Call start_cleanup() on app startup and stop_cleanup() on shutdown.
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ):
        if not secret_key:
            raise ValueError("A session secret is required")
        self._key = secret_key.encode("utf-8")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._sessions: Dict[str, Session] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    def create(self) -> Session:
        """Create an empty session."""
        now = self._clock()
        session = Session(
            session_id=secrets.token_urlsafe(32),
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        """Return a live session, or None (expired sessions are dropped)."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._clock() > session.expires_at:
            del self._sessions[session_id]
            return None
        return session

    def delete(self, session_id: str) -> None:
        """Remove a session entirely."""
        self._sessions.pop(session_id, None)

    def encode_cookie(self, session: Session) -> str:
        """Cookie value for a session."""
        return f"{session.session_id}.{self._sign(session.session_id)}"

    def load(self, cookie_value: Optional[str]) -> Optional[Session]:
        """Resolve a cookie value to a live session, or None if absent, forged or expired."""
        if not cookie_value or "." not in cookie_value:
            return None
        session_id, _, signature = cookie_value.rpartition(".")
        if not hmac.compare_digest(signature, self._sign(session_id)):
            self.logger.debug("session cookie signature mismatch")
            return None
        return self.get(session_id)

    def load_or_create(self, cookie_value: Optional[str]) -> Session:
        """Resolve a cookie value, starting a new session if it does not resolve."""
        return self.load(cookie_value) or self.create()

    # -- value bag --

    @staticmethod
    def user_id(session: Optional[Session]) -> Optional[int]:
        """Return the signed-in user id, or None when absent or of the wrong shape."""
        if session is None:
            return None
        value = session.values.get(USER_ID_KEY)
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        return value

    @staticmethod
    def set_user(session: Session, user_id: int) -> None:
        session.values[USER_ID_KEY] = user_id

    @staticmethod
    def clear(session: Session) -> None:
        """Drop every value (logout)."""
        session.values.clear()

    @staticmethod
    def flash(session: Session, message: str, category: str = "error") -> None:
        """Queue a message for the next page render."""
        session.values.setdefault(FLASHES_KEY, []).append({"category": category, "message": message})

    @staticmethod
    def pop_flashes(session: Optional[Session]) -> List[Dict[str, str]]:
        """Return and consume queued flash messages."""
        if session is None:
            return []
        return session.values.pop(FLASHES_KEY, [])

    # -- expiry --

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Return count of removed sessions."""
        now = self._clock()
        expired = [sid for sid, s in self._sessions.items() if now > s.expires_at]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            self.logger.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def start_cleanup(self) -> None:
        """Start the periodic cleanup background task."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        """Stop the periodic cleanup background task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup_expired()

    def _sign(self, session_id: str) -> str:
        return hmac.new(self._key, session_id.encode("utf-8"), hashlib.sha256).hexdigest()
