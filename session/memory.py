"""
session/memory.py -- Process-local session backend.

Holds values in a plain dict. Nothing survives the process, which makes it the
default for tests and single-process tools like the CLI.

Usage:
    session = MemorySession()
    session.set("auth_user", "alice")
    session.regenerate()          # new id, "auth_user" still present
    session.destroy()             # everything gone
"""

from __future__ import annotations

from typing import Any, Optional

from session.base import new_session_id


class MemorySession:
    def __init__(self, session_id: Optional[str] = None) -> None:
        self._id = session_id or new_session_id()
        self._data: dict[str, Any] = {}

    @property
    def id(self) -> str:
        return self._id

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def regenerate(self) -> str:
        self._id = new_session_id()
        return self._id

    def destroy(self) -> None:
        self._data.clear()
        self._id = new_session_id()
