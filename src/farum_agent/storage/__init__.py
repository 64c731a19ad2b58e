from farum_agent.storage.in_memory import InMemoryJournalStore, InMemoryMessageStore, InMemorySessionStore
from farum_agent.storage.ports import JournalStore, MessageStore, SessionStore
from farum_agent.storage.sqlite_store import SqliteEventSink, SqliteStore

__all__ = [
    "InMemoryJournalStore",
    "InMemoryMessageStore",
    "InMemorySessionStore",
    "JournalStore",
    "MessageStore",
    "SessionStore",
    "SqliteEventSink",
    "SqliteStore",
]
