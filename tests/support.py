from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from farum_agent.agentflow.stage import StageInput, StageOutput
from farum_agent.errors import GenerationError, StorageError
from farum_agent.models import ConversationContext, InteractionMode
from farum_agent.tool import ToolContext


def make_context(session_id: str = "s1", user_id: str = "u1", mode=InteractionMode.CHECK_IN) -> ConversationContext:
    return ConversationContext(session_id=session_id, user_id=user_id, mode=mode)


class StepClock:
    """Deterministic clock advancing one millisecond per call."""

    def __init__(self, start: datetime | None = None):
        self._current = start or datetime(2026, 1, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        value = self._current
        self._current += timedelta(milliseconds=1)
        return value


class ScriptedGenerator:
    """Records every call and answers with ``<stage-tag>:<n>`` or a fixed reply."""

    def __init__(self, reply: str | None = None, *, fail_on_call: int | None = None, delay: float = 0.0):
        self.calls: list[tuple[str, ConversationContext]] = []
        self._reply = reply
        self._fail_on_call = fail_on_call
        self._delay = delay

    async def generate_reply(self, prompt: str, context: ConversationContext) -> str:
        self.calls.append((prompt, context))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail_on_call is not None and len(self.calls) == self._fail_on_call:
            raise GenerationError("backend unavailable")
        if self._reply is not None:
            return self._reply
        return f"reply-{len(self.calls)}"


class SuffixStage:
    """Appends ``-<name>`` to the running text."""

    def __init__(self, name: str):
        self._name = name
        self.seen: list[StageInput] = []

    @property
    def name(self) -> str:
        return self._name

    async def run(self, stage_input: StageInput) -> StageOutput:
        self.seen.append(stage_input)
        return StageOutput(text=f"{stage_input.text}-{self._name}", context=stage_input.context)


class FailingStage:
    def __init__(self, name: str, error: Exception):
        self._name = name
        self._error = error

    @property
    def name(self) -> str:
        return self._name

    async def run(self, stage_input: StageInput) -> StageOutput:
        raise self._error


class RecordingEvents:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def emit(self, session_id: str, event_type: str, payload: dict) -> None:
        self.events.append((session_id, event_type, payload))

    def types(self) -> list[str]:
        return [event_type for _, event_type, _ in self.events]


class RecordingJournalTool:
    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple[ToolContext, dict[str, Any]]] = []
        self._error = error

    @property
    def name(self) -> str:
        return "journal_store"

    @property
    def description(self) -> str:
        return "test journal"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object"}

    async def call(self, tool_context: ToolContext, tool_input: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((tool_context, tool_input))
        if self._error is not None:
            raise self._error
        return {"status": "ok", "entry_id": "e1"}


class BrokenJournalStore:
    async def append_journal_entry(self, entry) -> None:
        raise StorageError("journal backend down")

    async def list_journal_entries_by_user(self, user_id: str, limit: int) -> list:
        raise StorageError("journal backend down")
