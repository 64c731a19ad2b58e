from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from farum_agent.errors import StorageError
from farum_agent.ids import utc_now
from farum_agent.models import (
    ActionStatus,
    InteractionMode,
    JournalAction,
    JournalEntry,
    Message,
    Role,
    Session,
)


class SqliteStore:
    """Durable backend implementing the session, message and journal stores.

    A single connection is shared; every statement runs under one lock so the
    store can be used from worker threads as well as the event loop.
    """

    def __init__(self, db_path: str):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._initialize_schema()

    def close(self) -> None:
        self._conn.close()

    def execute(self, query: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        with self._lock:
            return self._conn.execute(query, params)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as ex:
                self._conn.rollback()
                raise StorageError(str(ex)) from ex
            except BaseException:
                self._conn.rollback()
                raise

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                preferred_mode TEXT NOT NULL,
                title TEXT NOT NULL DEFAULT ''
            );

            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
                seq INTEGER NOT NULL,
                author TEXT NOT NULL CHECK (author IN ('user', 'agent')),
                text TEXT NOT NULL,
                mode TEXT NOT NULL,
                created_at TEXT NOT NULL,
                reply_to TEXT NULL,
                tags_json TEXT NOT NULL DEFAULT '[]',
                content_type TEXT NOT NULL DEFAULT '',
                UNIQUE(session_id, seq)
            );

            CREATE TABLE IF NOT EXISTS journal_entries (
                id TEXT PRIMARY KEY,
                seq INTEGER NOT NULL,
                session_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                problem_summary TEXT NOT NULL DEFAULT '',
                action_plan_json TEXT NOT NULL DEFAULT '[]',
                reflection TEXT NOT NULL DEFAULT '',
                mood_before TEXT NOT NULL DEFAULT '',
                mood_after TEXT NOT NULL DEFAULT ''
            );

            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL,
                type TEXT NOT NULL,
                payload_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_sessions_user_created
                ON sessions(user_id, created_at);
            CREATE INDEX IF NOT EXISTS idx_messages_session_seq
                ON messages(session_id, seq);
            CREATE INDEX IF NOT EXISTS idx_journal_user_seq
                ON journal_entries(user_id, seq);
            CREATE INDEX IF NOT EXISTS idx_events_session_created
                ON events(session_id, created_at);
            """
        )
        self._conn.commit()

    # -- sessions --

    async def create_session(self, session: Session) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO sessions (id, user_id, created_at, updated_at, preferred_mode, title)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.user_id,
                    session.created_at.isoformat(),
                    session.updated_at.isoformat(),
                    str(session.preferred_mode),
                    session.title,
                ),
            )

    async def update_session(self, session: Session) -> None:
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE sessions
                SET user_id = ?, updated_at = ?, preferred_mode = ?, title = ?
                WHERE id = ?
                """,
                (
                    session.user_id,
                    session.updated_at.isoformat(),
                    str(session.preferred_mode),
                    session.title,
                    session.id,
                ),
            )
            if cursor.rowcount == 0:
                raise StorageError(f"session not found: {session.id}")

    async def get_session(self, session_id: str) -> Session | None:
        row = self._fetchone("SELECT * FROM sessions WHERE id = ? LIMIT 1", (session_id,))
        if row is None:
            return None
        return _row_to_session(row)

    async def list_sessions_by_user(self, user_id: str, limit: int) -> list[Session]:
        rows = self._fetchall(
            """
            SELECT * FROM sessions
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (user_id, limit if limit > 0 else -1),
        )
        return [_row_to_session(row) for row in rows]

    # -- messages --

    async def append_message(self, message: Message) -> None:
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT COALESCE(MAX(seq), 0) AS max_seq FROM messages WHERE session_id = ?",
                (message.session_id,),
            ).fetchone()
            conn.execute(
                """
                INSERT INTO messages (id, session_id, seq, author, text, mode, created_at, reply_to, tags_json, content_type)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.session_id,
                    int(row["max_seq"]) + 1,
                    str(message.author),
                    message.text,
                    str(message.mode),
                    message.created_at.isoformat(),
                    message.reply_to,
                    json.dumps(list(message.tags), ensure_ascii=True),
                    message.content_type,
                ),
            )

    async def get_messages_by_session(self, session_id: str, limit: int) -> list[Message]:
        rows = self._fetchall(
            """
            SELECT * FROM messages
            WHERE session_id = ?
            ORDER BY seq DESC
            LIMIT ?
            """,
            (session_id, limit if limit > 0 else -1),
        )
        return [_row_to_message(row) for row in reversed(rows)]

    # -- journal --

    async def append_journal_entry(self, entry: JournalEntry) -> None:
        with self.transaction() as conn:
            row = conn.execute("SELECT COALESCE(MAX(seq), 0) AS max_seq FROM journal_entries").fetchone()
            conn.execute(
                """
                INSERT INTO journal_entries (
                    id, seq, session_id, user_id, created_at, updated_at,
                    problem_summary, action_plan_json, reflection, mood_before, mood_after
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    int(row["max_seq"]) + 1,
                    entry.session_id,
                    entry.user_id,
                    entry.created_at.isoformat(),
                    entry.updated_at.isoformat(),
                    entry.problem_summary,
                    json.dumps([_action_to_dict(a) for a in entry.action_plan], ensure_ascii=True),
                    entry.reflection,
                    entry.mood_before,
                    entry.mood_after,
                ),
            )

    async def list_journal_entries_by_user(self, user_id: str, limit: int) -> list[JournalEntry]:
        rows = self._fetchall(
            """
            SELECT * FROM journal_entries
            WHERE user_id = ?
            ORDER BY seq DESC
            LIMIT ?
            """,
            (user_id, limit if limit > 0 else -1),
        )
        return [_row_to_journal_entry(row) for row in reversed(rows)]

    # -- events --

    def record_event(self, session_id: str, event_type: str, payload: dict) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO events (id, session_id, type, payload_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(uuid4()),
                    session_id,
                    event_type,
                    json.dumps(payload, ensure_ascii=True, default=str),
                    utc_now().isoformat(),
                ),
            )

    def _fetchone(self, query: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        try:
            with self._lock:
                return self._conn.execute(query, params).fetchone()
        except sqlite3.Error as ex:
            raise StorageError(str(ex)) from ex

    def _fetchall(self, query: str, params: tuple[Any, ...]) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self._conn.execute(query, params).fetchall()
        except sqlite3.Error as ex:
            raise StorageError(str(ex)) from ex


class SqliteEventSink:
    """Writes pipeline and lifecycle events to the ``events`` table."""

    def __init__(self, store: SqliteStore):
        self._store = store

    def emit(self, session_id: str, event_type: str, payload: dict) -> None:
        self._store.record_event(session_id, event_type, payload)


def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        user_id=row["user_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        preferred_mode=InteractionMode.parse(row["preferred_mode"]),
        title=row["title"],
    )


def _row_to_message(row: sqlite3.Row) -> Message:
    return Message(
        id=row["id"],
        session_id=row["session_id"],
        author=Role(row["author"]),
        text=row["text"],
        mode=InteractionMode.parse(row["mode"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        reply_to=row["reply_to"],
        tags=tuple(json.loads(row["tags_json"] or "[]")),
        content_type=row["content_type"],
    )


def _action_to_dict(action: JournalAction) -> dict:
    return {
        "id": action.id,
        "description": action.description,
        "status": str(action.status),
        "notes": action.notes,
        "created_at": action.created_at.isoformat(),
        "updated_at": action.updated_at.isoformat(),
    }


def _row_to_journal_entry(row: sqlite3.Row) -> JournalEntry:
    actions = tuple(
        JournalAction(
            id=item["id"],
            description=item["description"],
            status=ActionStatus(item["status"]),
            notes=item.get("notes", ""),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )
        for item in json.loads(row["action_plan_json"] or "[]")
    )
    return JournalEntry(
        id=row["id"],
        session_id=row["session_id"],
        user_id=row["user_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        problem_summary=row["problem_summary"],
        action_plan=actions,
        reflection=row["reflection"],
        mood_before=row["mood_before"],
        mood_after=row["mood_after"],
    )
