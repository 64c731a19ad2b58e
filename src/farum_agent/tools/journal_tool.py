from collections.abc import Callable
from datetime import datetime
from typing import Any

from loguru import logger

from farum_agent.errors import StorageError, ValidationError
from farum_agent.ids import IdGenerator, format_ns, utc_now
from farum_agent.models import ActionStatus, JournalAction, JournalEntry
from farum_agent.storage.ports import JournalStore
from farum_agent.tool import ToolContext


class JournalTool:
    """Persists a structured reflection (summary, moods, action plan) for a session."""

    def __init__(
        self,
        store: JournalStore,
        *,
        now: Callable[[], datetime] = utc_now,
        ids: IdGenerator | None = None,
        log=None,
    ):
        self._store = store
        self._now = now
        self._ids = ids or IdGenerator()
        self._log = (log or logger).bind(component="journal_tool")

    @property
    def name(self) -> str:
        return "journal_store"

    @property
    def description(self) -> str:
        return (
            "Save a journal entry for the current session: a short problem summary, "
            "the user's mood before and after, a closing reflection and an ordered "
            "list of small actions. Actions without a description are ignored."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "problem_summary": {"type": "string", "description": "What the session worked on"},
                "reflection": {"type": "string", "description": "Closing reflection"},
                "mood_before": {"type": "string", "description": "Mood at the start of the session"},
                "mood_after": {"type": "string", "description": "Mood at the end of the session"},
                "actions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "description": {"type": "string"},
                            "status": {"type": "string", "enum": ["pending", "done"]},
                            "notes": {"type": "string"},
                        },
                        "required": ["description"],
                    },
                },
            },
        }

    async def call(self, tool_context: ToolContext, tool_input: dict[str, Any]) -> dict[str, Any]:
        if not tool_context.user_id or not tool_context.session_id:
            raise ValidationError("journal_store: missing user_id or session_id in tool context")

        now = self._now()
        epoch_ns = self._ids.next_ns()
        entry = JournalEntry(
            id=format_ns(epoch_ns),
            session_id=tool_context.session_id,
            user_id=tool_context.user_id,
            created_at=now,
            updated_at=now,
            problem_summary=_get_string(tool_input, "problem_summary"),
            action_plan=tuple(parse_actions(_get(tool_input, "actions"), now, epoch_ns)),
            reflection=_get_string(tool_input, "reflection"),
            mood_before=_get_string(tool_input, "mood_before"),
            mood_after=_get_string(tool_input, "mood_after"),
        )

        try:
            await self._store.append_journal_entry(entry)
        except StorageError:
            raise
        except Exception as ex:
            raise StorageError(f"journal_store: append failed: {ex}") from ex

        self._log.bind(
            session_id=entry.session_id,
            request_id=tool_context.request_id,
        ).info(f"Journal entry {entry.id} saved with {len(entry.action_plan)} action(s)")

        return {
            "status": "ok",
            "entry_id": entry.id,
            "session_id": entry.session_id,
            "user_id": entry.user_id,
            "created_at": entry.created_at,
            "actions_count": len(entry.action_plan),
        }


def parse_actions(raw: Any, now: datetime, epoch_ns: int) -> list[JournalAction]:
    if not isinstance(raw, list):
        return []

    actions: list[JournalAction] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            continue
        description = _get_string(item, "description")
        if not description:
            continue
        try:
            status = ActionStatus(_get_string(item, "status") or ActionStatus.PENDING)
        except ValueError:
            status = ActionStatus.PENDING
        actions.append(
            JournalAction(
                id=f"a-{epoch_ns}-{index}",
                description=description,
                status=status,
                notes=_get_string(item, "notes"),
                created_at=now,
                updated_at=now,
            )
        )
    return actions


def _get(mapping: Any, key: str) -> Any:
    if not isinstance(mapping, dict):
        return None
    return mapping.get(key)


def _get_string(mapping: Any, key: str) -> str:
    value = _get(mapping, key)
    return value if isinstance(value, str) else ""
