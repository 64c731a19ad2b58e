from __future__ import annotations

from farum_agent.errors import StorageError
from farum_agent.models import JournalEntry, Message, Session
from farum_agent.storage.rwlock import ReadWriteLock


def _tail(items: list, limit: int) -> list:
    if limit > 0 and len(items) > limit:
        return items[len(items) - limit:]
    return list(items)


class InMemorySessionStore:
    """Process-local session store. Not durable; meant for local mode and tests."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = ReadWriteLock()

    async def create_session(self, session: Session) -> None:
        async with self._lock.write():
            if session.id in self._sessions:
                raise StorageError(f"session already exists: {session.id}")
            self._sessions[session.id] = session

    async def update_session(self, session: Session) -> None:
        async with self._lock.write():
            if session.id not in self._sessions:
                raise StorageError(f"session not found: {session.id}")
            self._sessions[session.id] = session

    async def get_session(self, session_id: str) -> Session | None:
        async with self._lock.read():
            return self._sessions.get(session_id)

    async def list_sessions_by_user(self, user_id: str, limit: int) -> list[Session]:
        async with self._lock.read():
            owned = [s for s in self._sessions.values() if s.user_id == user_id]
        owned.sort(key=lambda s: (s.created_at, s.id), reverse=True)
        if limit > 0:
            return owned[:limit]
        return owned


class InMemoryMessageStore:
    def __init__(self) -> None:
        self._messages: dict[str, list[Message]] = {}
        self._lock = ReadWriteLock()

    async def append_message(self, message: Message) -> None:
        async with self._lock.write():
            self._messages.setdefault(message.session_id, []).append(message)

    async def get_messages_by_session(self, session_id: str, limit: int) -> list[Message]:
        async with self._lock.read():
            return _tail(self._messages.get(session_id, []), limit)


class InMemoryJournalStore:
    def __init__(self) -> None:
        self._entries: dict[str, JournalEntry] = {}
        self._by_user: dict[str, list[str]] = {}
        self._lock = ReadWriteLock()

    async def append_journal_entry(self, entry: JournalEntry) -> None:
        async with self._lock.write():
            if entry.id in self._entries:
                raise StorageError(f"journal entry already exists: {entry.id}")
            self._entries[entry.id] = entry
            self._by_user.setdefault(entry.user_id, []).append(entry.id)

    async def list_journal_entries_by_user(self, user_id: str, limit: int) -> list[JournalEntry]:
        async with self._lock.read():
            ids = _tail(self._by_user.get(user_id, []), limit)
            return [self._entries[entry_id] for entry_id in ids if entry_id in self._entries]
