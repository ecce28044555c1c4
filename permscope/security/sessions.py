"""
Session-scoped cache of AuthorizationContext objects.

A context is built once at login and returned unchanged for every request
of that session until logout (or expiry). Grant edits made by an admin in
the meantime are not pushed into live sessions; they apply from the next
login.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass

from permscope.errors import SessionNotFound

from .context import AuthorizationContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEntry:
    token: str
    context: AuthorizationContext
    created_at: float


class SessionCache:
    def __init__(self, ttl_seconds: float | None = None) -> None:
        self._ttl_seconds = ttl_seconds
        self._entries: dict[str, SessionEntry] = {}
        self._lock = threading.Lock()

    def open(self, context: AuthorizationContext) -> str:
        """Store an already-built context and return its new session token."""
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._entries[token] = SessionEntry(token=token, context=context, created_at=time.monotonic())
        logger.info("Session opened user_id=%s", context.user_id)
        return token

    def get(self, token: str) -> AuthorizationContext:
        with self._lock:
            entry = self._entries.get(token)
            if entry is not None and self._expired(entry):
                del self._entries[token]
                entry = None
        if entry is None:
            raise SessionNotFound("unknown or expired session")
        return entry.context

    def close(self, token: str) -> bool:
        with self._lock:
            entry = self._entries.pop(token, None)
        if entry is not None:
            logger.info("Session closed user_id=%s", entry.context.user_id)
        return entry is not None

    def close_user(self, user_id: int) -> int:
        """Drop every session of one user (e.g. after their account is deactivated)."""
        with self._lock:
            tokens = [t for t, e in self._entries.items() if e.context.user_id == user_id]
            for token in tokens:
                del self._entries[token]
        return len(tokens)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: SessionEntry) -> bool:
        if self._ttl_seconds is None:
            return False
        return time.monotonic() - entry.created_at > self._ttl_seconds
