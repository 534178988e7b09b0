"""
session/database.py -- SQLAlchemy Core session backend.

Pattern: Repository over a single `sessions` table. Each session is one row;
its values live in the `contents` column as a JSON object, so every stored
value must be JSON-serializable.

Consistency: every mutation re-reads the stored row inside its write
transaction and applies only its own change, so two handles on the same
session_id do not overwrite each other's keys. get() is served from the copy
refreshed by this handle's last load or write.

In-memory SQLite (the default URL) runs on one StaticPool connection shared
by all threads. With the default pool each thread would get its own, empty
:memory: database.

Security:
  All queries use bound parameters. No f-strings in SQL.

  regenerate() moves the row to a new session_id inside one transaction, so
  the old identifier stops resolving the moment the new one exists. This is
  what makes login/logout anti-fixation work on this backend.

Every SQLAlchemy failure is re-raised as core.errors.SessionError. Call
close() to dispose of the engine when the session is no longer needed.

Layer rule: no imports from auth/.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from core.errors import SessionError
from session.base import new_session_id

logger = logging.getLogger("authgate.session")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("session_id", String(64), primary_key=True),
    Column("contents", Text, nullable=False),  # JSON object
    Column("last_active", String(32), nullable=False),  # ISO 8601
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _make_engine(db_url: str) -> Engine:
    url = make_url(db_url)
    kwargs: dict = {}
    is_sqlite = url.get_backend_name() == "sqlite"
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _set_wal_mode)
    return engine


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------


class DatabaseSession:
    """Session whose values persist in a SQL table.

    Usage:
        session = DatabaseSession("sqlite:///sessions.db")
        session.set("auth_user", "alice")
        same = DatabaseSession("sqlite:///sessions.db", session_id=session.id)
        same.get("auth_user")   # "alice"
        session.close()
    """

    def __init__(self, db_url: str, session_id: Optional[str] = None) -> None:
        try:
            self.engine: Engine = _make_engine(db_url)
            _metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise SessionError(f"Could not open session database: {e}") from e

        self._id = session_id or new_session_id()
        self._data: dict[str, Any] = self._load()

    @property
    def id(self) -> str:
        return self._id

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._mutate(lambda data: {**data, key: value})

    def delete(self, key: str) -> None:
        self._mutate(lambda data: {k: v for k, v in data.items() if k != key})

    def regenerate(self) -> str:
        new_id = new_session_id()
        try:
            with self.engine.begin() as conn:
                data = self._read(conn)
                conn.execute(_sessions.delete().where(_sessions.c.session_id == self._id))
                if data:
                    conn.execute(
                        _sessions.insert().values(
                            session_id=new_id,
                            contents=json.dumps(data),
                            last_active=_now_iso(),
                        )
                    )
        except SQLAlchemyError as e:
            raise SessionError(f"Could not regenerate session: {e}") from e
        self._id = new_id
        self._data = data
        return new_id

    def destroy(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(_sessions.delete().where(_sessions.c.session_id == self._id))
        except SQLAlchemyError as e:
            raise SessionError(f"Could not destroy session: {e}") from e
        self._data = {}
        self._id = new_session_id()

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read(self, conn: Connection) -> dict[str, Any]:
        row = conn.execute(_sessions.select().where(_sessions.c.session_id == self._id)).fetchone()
        return json.loads(row.contents) if row is not None else {}

    def _load(self) -> dict[str, Any]:
        try:
            with self.engine.connect() as conn:
                return self._read(conn)
        except SQLAlchemyError as e:
            raise SessionError(f"Could not load session: {e}") from e

    def _mutate(self, change: Callable[[dict[str, Any]], dict[str, Any]]) -> None:
        """Apply change to the stored row and write it back in one transaction."""
        try:
            with self.engine.begin() as conn:
                updated = change(self._read(conn))
                try:
                    contents = json.dumps(updated)
                except TypeError as e:
                    raise SessionError(f"Session values must be JSON-serializable: {e}") from e
                self._upsert(conn, contents)
        except SQLAlchemyError as e:
            raise SessionError(f"Could not write session: {e}") from e
        self._data = updated

    def _upsert(self, conn: Connection, contents: str) -> None:
        """UPDATE the row, falling back to INSERT when it does not exist yet."""
        now = _now_iso()
        result = conn.execute(
            _sessions.update()
            .where(_sessions.c.session_id == self._id)
            .values(contents=contents, last_active=now)
        )
        if result.rowcount == 0:
            conn.execute(_sessions.insert().values(session_id=self._id, contents=contents, last_active=now))
