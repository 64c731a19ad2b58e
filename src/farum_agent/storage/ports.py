from __future__ import annotations

from typing import Protocol, runtime_checkable

from farum_agent.models import JournalEntry, Message, Session


@runtime_checkable
class SessionStore(Protocol):
    async def create_session(self, session: Session) -> None: ...

    async def update_session(self, session: Session) -> None: ...

    async def get_session(self, session_id: str) -> Session | None:
        """Return the session, or None when it does not exist."""
        ...

    async def list_sessions_by_user(self, user_id: str, limit: int) -> list[Session]:
        """Newest-created first. ``limit <= 0`` returns every session."""
        ...


@runtime_checkable
class MessageStore(Protocol):
    async def append_message(self, message: Message) -> None: ...

    async def get_messages_by_session(self, session_id: str, limit: int) -> list[Message]:
        """Oldest first. ``limit > 0`` keeps only the most recent ``limit`` messages."""
        ...


@runtime_checkable
class JournalStore(Protocol):
    async def append_journal_entry(self, entry: JournalEntry) -> None: ...

    async def list_journal_entries_by_user(self, user_id: str, limit: int) -> list[JournalEntry]:
        """Insertion order (newest last). ``limit > 0`` keeps the most recent ``limit``."""
        ...
