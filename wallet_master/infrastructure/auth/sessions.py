"""In-process bearer session registry"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    token: str
    user_id: int
    expires_at: float


class SessionRegistry:
    """
    Maps opaque bearer tokens to user ids.

    Tokens expire `ttl_seconds` after login. Expired tokens are dropped when
    presented and swept whenever a new session is issued.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        self._sessions: Dict[str, AuthSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def issue(self, user_id: int) -> str:
        token = f"wm_{secrets.token_urlsafe(32)}"
        now = time.monotonic()
        with self._lock:
            expired = [key for key, session in self._sessions.items() if session.expires_at <= now]
            for key in expired:
                del self._sessions[key]
            self._sessions[token] = AuthSession(token, user_id, now + self.ttl_seconds)
        logger.info("Session issued", extra={"user_id": user_id})
        return token

    def resolve(self, token: str) -> Optional[int]:
        """User id behind `token`, or None when unknown or expired"""
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= time.monotonic():
                del self._sessions[token]
                return None
            return session.user_id

    def revoke(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)
