import asyncio
from datetime import UTC, datetime, timedelta

from farum_agent.errors import StorageError
from farum_agent.models import ActionStatus, InteractionMode, JournalAction, JournalEntry, Message, Role, Session
from farum_agent.storage import SqliteEventSink, SqliteStore
from tests.storage.base import SqliteStoreTestCase

T0 = datetime(2026, 1, 1, 8, 30, tzinfo=UTC)


def _session(session_id: str, user_id: str = "u1", minutes: int = 0) -> Session:
    at = T0 + timedelta(minutes=minutes)
    return Session(
        id=session_id,
        user_id=user_id,
        created_at=at,
        updated_at=at,
        preferred_mode=InteractionMode.DEEP_DIVE,
        title=f"title {session_id}",
    )


def _message(session_id: str, index: int, **overrides) -> Message:
    fields = dict(
        id=f"{session_id}-m{index}",
        session_id=session_id,
        author=Role.AGENT if index % 2 else Role.USER,
        text=f"text {index}",
        mode=InteractionMode.DEEP_DIVE,
        created_at=T0 + timedelta(seconds=index),
    )
    fields.update(overrides)
    return Message(**fields)


class SqliteSessionTests(SqliteStoreTestCase):
    def test_session_round_trips_all_fields(self) -> None:
        original = _session("s1")
        asyncio.run(self._store.create_session(original))

        loaded = asyncio.run(self._store.get_session("s1"))
        self.assertEqual(original, loaded)

    def test_duplicate_session_raises_storage_error(self) -> None:
        asyncio.run(self._store.create_session(_session("s1")))
        with self.assertRaises(StorageError):
            asyncio.run(self._store.create_session(_session("s1")))

    def test_update_changes_updated_at(self) -> None:
        asyncio.run(self._store.create_session(_session("s1")))
        later = _session("s1", minutes=7)
        asyncio.run(self._store.update_session(later))
        self.assertEqual(later.updated_at, asyncio.run(self._store.get_session("s1")).updated_at)

    def test_update_missing_session_raises(self) -> None:
        with self.assertRaises(StorageError):
            asyncio.run(self._store.update_session(_session("ghost")))

    def test_missing_session_is_none(self) -> None:
        self.assertIsNone(asyncio.run(self._store.get_session("nope")))

    def test_list_sessions_by_user_newest_first(self) -> None:
        for sid, minutes in (("a", 1), ("b", 3), ("c", 2)):
            asyncio.run(self._store.create_session(_session(sid, minutes=minutes)))
        asyncio.run(self._store.create_session(_session("z", user_id="u2", minutes=9)))

        self.assertEqual(["b", "c"], [s.id for s in asyncio.run(self._store.list_sessions_by_user("u1", 2))])
        self.assertEqual(["b", "c", "a"], [s.id for s in asyncio.run(self._store.list_sessions_by_user("u1", 0))])

    def test_data_survives_reopen(self) -> None:
        asyncio.run(self._store.create_session(_session("s1")))
        asyncio.run(self._store.append_message(_message("s1", 0)))
        self._store.close()

        self._store = SqliteStore(self._db_path)
        self.assertIsNotNone(asyncio.run(self._store.get_session("s1")))
        self.assertEqual(1, len(asyncio.run(self._store.get_messages_by_session("s1", 0))))


class SqliteMessageTests(SqliteStoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        asyncio.run(self._store.create_session(_session("s1")))

    def test_messages_keep_optional_fields(self) -> None:
        message = _message("s1", 1, reply_to="s1-m0", tags=("calm", "work"), content_type="text")
        asyncio.run(self._store.append_message(message))

        loaded = asyncio.run(self._store.get_messages_by_session("s1", 0))
        self.assertEqual([message], loaded)

    def test_tail_window_is_oldest_first(self) -> None:
        for i in range(6):
            asyncio.run(self._store.append_message(_message("s1", i)))

        tail = asyncio.run(self._store.get_messages_by_session("s1", 4))
        self.assertEqual(["s1-m2", "s1-m3", "s1-m4", "s1-m5"], [m.id for m in tail])

    def test_message_for_unknown_session_is_rejected(self) -> None:
        with self.assertRaises(StorageError):
            asyncio.run(self._store.append_message(_message("ghost", 0)))


class SqliteJournalTests(SqliteStoreTestCase):
    def _entry(self, entry_id: str, user_id: str = "u1") -> JournalEntry:
        actions = (
            JournalAction("a-1-0", "walk", ActionStatus.PENDING, "after dinner", T0, T0),
            JournalAction("a-1-2", "journal", ActionStatus.DONE, "", T0, T0),
        )
        return JournalEntry(
            id=entry_id,
            session_id="s1",
            user_id=user_id,
            created_at=T0,
            updated_at=T0,
            problem_summary="overwhelmed",
            action_plan=actions,
            reflection="one step at a time",
            mood_before="anxious",
            mood_after="calmer",
        )

    def test_entry_round_trip_preserves_action_order(self) -> None:
        entry = self._entry("e1")
        asyncio.run(self._store.append_journal_entry(entry))

        loaded = asyncio.run(self._store.list_journal_entries_by_user("u1", 0))
        self.assertEqual([entry], loaded)
        self.assertEqual(["walk", "journal"], [a.description for a in loaded[0].action_plan])

    def test_list_limit_keeps_most_recent_in_insertion_order(self) -> None:
        for entry_id in ("e1", "e2", "e3"):
            asyncio.run(self._store.append_journal_entry(self._entry(entry_id)))
        asyncio.run(self._store.append_journal_entry(self._entry("x", user_id="u2")))

        entries = asyncio.run(self._store.list_journal_entries_by_user("u1", 2))
        self.assertEqual(["e2", "e3"], [e.id for e in entries])


class SqliteEventSinkTests(SqliteStoreTestCase):
    def test_events_are_persisted(self) -> None:
        sink = SqliteEventSink(self._store)
        sink.emit("s1", "journal.failed", {"error": "boom"})
        sink.emit("s1", "stage.completed", {"stage": "listener"})

        row = self._store.execute("SELECT COUNT(*) AS c FROM events WHERE session_id = ?", ("s1",)).fetchone()
        self.assertEqual(2, int(row["c"]))
