"""session/ -- Session capability and reference backends for authgate.

get_session() is the only entry point AuthService uses: it maps a
session_type name to a backend and builds it from the config mapping.

Layer rule: session/ imports only core/ and third-party libraries.
auth/ imports from session/, not the other way around.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from core.errors import SessionError
from session.base import Session
from session.database import DatabaseSession
from session.memory import MemorySession

logger = logging.getLogger("authgate.session")

# session_type -> factory(config) -> Session
_BACKENDS: dict[str, Callable[[Mapping[str, Any]], Session]] = {
    "memory": lambda config: MemorySession(),
    "database": lambda config: DatabaseSession(config.get("session_db_url", "sqlite:///:memory:")),
}


def get_session(session_type: str, config: Optional[Mapping[str, Any]] = None) -> Session:
    """Return a new Session for the named backend.

    Raises SessionError when session_type is unknown or the backend cannot be
    opened.
    """
    factory = _BACKENDS.get((session_type or "").strip().lower())
    if factory is None:
        raise SessionError(f"Unknown session_type '{session_type}'.")
    session = factory(config or {})
    logger.debug("Acquired %s session backend", session_type)
    return session


__all__ = ["DatabaseSession", "MemorySession", "Session", "get_session"]
