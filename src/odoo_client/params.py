"""
Positional parameter construction for ``execute``-style remote calls.

Every authenticated call on the ``object`` and ``report`` endpoints takes the
same three leading arguments (database, user id, password) followed by the
operation-specific ones.
"""

from __future__ import annotations

from .session import SessionManager


class ParameterBuilder:
    """
    Assembles the positional argument list expected by the remote endpoints.

    Args:
        database: Database name sent as the first argument of every call.
        password: Credential sent as the third argument of every call.
        sessions: Supplies the authenticated user id; the first build may
            trigger a login.
    """

    def __init__(self, database: str, password: str, sessions: SessionManager) -> None:
        self.database = database
        self.password = password
        self.sessions = sessions

    def build_raw(self, *args: object) -> list:
        """Return ``[database, uid, password, *args]``."""
        session = self.sessions.current_session()
        return [self.database, session.session_id, self.password, *args]

    def build(self, model: str, operation: str, *args: object) -> list:
        """Return ``[database, uid, password, model, operation, *args]``."""
        return self.build_raw(model, operation, *args)
