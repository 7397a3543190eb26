"""
Lazy authentication and session caching.

The first call needing a user id logs in through the ``common`` endpoint,
fetches the user's request context, and keeps both for the lifetime of the
client.  When a cache store is attached the pair is also persisted under
``__authentication`` so that another process can reuse it until it expires.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .config import (
    AUTH_CACHE_KEY,
    AUTH_CACHE_TTL,
    COMMON_ENDPOINT,
    CONTEXT_METHOD,
    CONTEXT_MODEL,
    OBJECT_ENDPOINT,
)
from .errors import AuthenticationError

if TYPE_CHECKING:
    from .cache import CacheStore
    from .dispatcher import CallDispatcher

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    """Authenticated user id and the request context returned by the server."""

    session_id: int | None
    context: dict = field(default_factory=dict)

    def as_cache_entry(self) -> dict:
        return {"uid": self.session_id, "context": dict(self.context)}

    @classmethod
    def from_cache_entry(cls, entry: Mapping) -> Session:
        return cls(session_id=entry["uid"], context=dict(entry.get("context") or {}))


class SessionManager:
    """
    Owns the client's session; authenticates at most once per process.

    Args:
        database: Database to log into.
        user: Login name.
        password: Password of ``user``.
        dispatcher: Executes the login and context calls.
        store: Optional cache store used to persist and restore the session.
    """

    def __init__(
        self,
        database: str,
        user: str,
        password: str,
        dispatcher: CallDispatcher,
        store: CacheStore | None = None,
    ) -> None:
        self.database = database
        self.user = user
        self.password = password
        self.dispatcher = dispatcher
        self.store = store
        self.state = SessionState.UNAUTHENTICATED
        self._session: Session | None = None
        self._lock = threading.Lock()

    def current_session(self) -> Session:
        """
        Return the authenticated session, logging in on first use.

        Raises:
            AuthenticationError: The server rejected the credentials.
            RemoteFaultError: The login or context call failed.
        """
        session = self._session
        if session is not None:
            return session

        # Concurrent first callers wait here and reuse the winner's session.
        with self._lock:
            if self._session is None:
                self.state = SessionState.AUTHENTICATING
                try:
                    self._session = self._restore() or self._authenticate()
                except Exception:
                    self.state = SessionState.UNAUTHENTICATED
                    raise
                self.state = SessionState.AUTHENTICATED
            return self._session

    def reset(self) -> None:
        """Forget the in-process session; the next call authenticates again."""
        with self._lock:
            self._session = None
            self.state = SessionState.UNAUTHENTICATED

    def _restore(self) -> Session | None:
        if self.store is None or not self.store.has(AUTH_CACHE_KEY):
            return None

        entry = self.store.get(AUTH_CACHE_KEY)
        if not isinstance(entry, Mapping) or not entry.get("uid"):
            logger.debug("Ignoring malformed cached session entry")
            return None

        logger.debug("Restored session for uid %s from cache", entry.get("uid"))
        return Session.from_cache_entry(entry)

    def _authenticate(self) -> Session:
        uid = self.dispatcher.invoke(
            COMMON_ENDPOINT, "login", [self.database, self.user, self.password]
        )
        if not uid:
            raise AuthenticationError(
                f"Login rejected for user '{self.user}' on database '{self.database}'."
            )

        context = self.dispatcher.invoke(
            OBJECT_ENDPOINT,
            "execute",
            [self.database, uid, self.password, CONTEXT_MODEL, CONTEXT_METHOD],
        )
        session = Session(session_id=uid, context=dict(context or {}))
        logger.info("Authenticated '%s' on '%s' as uid %s", self.user, self.database, uid)

        if self.store is not None:
            self.store.set(AUTH_CACHE_KEY, session.as_cache_entry(), AUTH_CACHE_TTL)

        return session
