"""
session/base.py -- The Session capability consumed by AuthService.

Pattern: Protocol (structural interface). Backends do not inherit from
anything; any object with these methods is a Session. AuthService assumes each
call is atomic with respect to a single request.

Layer rule: no imports from auth/.
"""

from __future__ import annotations

import secrets
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Session(Protocol):
    """Key-value session store with identifier rotation."""

    @property
    def id(self) -> str: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def regenerate(self) -> str:
        """Rotate the session identifier, keeping every stored value. Returns the new id."""
        ...

    def destroy(self) -> None:
        """Invalidate the session: all stored values are lost."""
        ...


def new_session_id() -> str:
    """Return a fresh random session identifier (256 bits, URL-safe)."""
    return secrets.token_urlsafe(32)
