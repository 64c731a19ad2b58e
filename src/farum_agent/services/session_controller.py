from __future__ import annotations

from farum_agent.models import JournalEntry, Message, Role, Session


class SessionController:
    """Formats sessions, timelines and journal entries for the terminal."""

    def __init__(self, *, line_prefix: str, short_id_len: int = 8):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len

    def short_id(self, value: str) -> str:
        if len(value) <= self._short_id_len:
            return value
        return value[-self._short_id_len:]

    def format_session_list_entry(self, session: Session, *, active_session_id: str | None) -> str:
        marker = "*" if session.id == active_session_id else " "
        return (
            f"{self._line_prefix}{marker} {session.title} [{self.short_id(session.id)}] (id={session.id}) "
            f"(mode={session.preferred_mode}, created={session.created_at.isoformat(timespec='seconds')}, "
            f"updated={session.updated_at.isoformat(timespec='seconds')})"
        )

    def format_message(self, message: Message) -> str:
        who = "farum" if message.author == Role.AGENT else "you"
        stamp = message.created_at.strftime("%H:%M:%S")
        return f"{self._line_prefix}[{stamp}] {who}: {message.text}"

    def format_journal_entry(self, entry: JournalEntry) -> list[str]:
        lines = [
            f"{self._line_prefix}{entry.created_at.isoformat(timespec='seconds')} "
            f"(session {self.short_id(entry.session_id)})"
        ]
        if entry.problem_summary:
            lines.append(f"{self._line_prefix}  Problem: {entry.problem_summary}")
        if entry.mood_before or entry.mood_after:
            lines.append(f"{self._line_prefix}  Mood: {entry.mood_before or '?'} -> {entry.mood_after or '?'}")
        for action in entry.action_plan:
            box = "x" if action.status == "done" else " "
            lines.append(f"{self._line_prefix}  [{box}] {action.description}")
        if entry.reflection:
            lines.append(f"{self._line_prefix}  {entry.reflection}")
        return lines
