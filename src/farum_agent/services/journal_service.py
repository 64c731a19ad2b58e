from __future__ import annotations

from loguru import logger

from farum_agent.models import JournalEntry
from farum_agent.storage.ports import JournalStore

DEFAULT_JOURNAL_LIMIT = 20


class JournalService:
    """Read side of the journal."""

    def __init__(self, store: JournalStore | None, *, log=None):
        self._store = store
        self._log = (log or logger).bind(component="journal")

    async def get_user_journal(self, user_id: str, limit: int = 0) -> list[JournalEntry]:
        """Return the last ``limit`` entries for a user, oldest first.

        ``limit <= 0`` falls back to the default window. Without a configured
        store the journal is simply empty.
        """
        if self._store is None:
            return []
        if limit <= 0:
            limit = DEFAULT_JOURNAL_LIMIT
        entries = await self._store.list_journal_entries_by_user(user_id, limit)
        self._log.bind(user_id=user_id).debug(f"fetched {len(entries)} journal entr(ies)")
        return entries
