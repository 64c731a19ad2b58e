from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    AGENT = "agent"


class InteractionMode(StrEnum):
    CHECK_IN = "check_in"
    DEEP_DIVE = "deep_dive"
    ACTION_PLAN = "action_plan"

    @classmethod
    def parse(cls, value: str | None, default: InteractionMode | None = None) -> InteractionMode:
        fallback = default or cls.CHECK_IN
        if not value:
            return fallback
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return fallback


class ActionStatus(StrEnum):
    PENDING = "pending"
    DONE = "done"


@dataclass(frozen=True)
class Session:
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    preferred_mode: InteractionMode
    title: str


@dataclass(frozen=True)
class Message:
    id: str
    session_id: str
    author: Role
    text: str
    mode: InteractionMode
    created_at: datetime
    reply_to: str | None = None
    tags: tuple[str, ...] = ()
    content_type: str = ""


@dataclass(frozen=True)
class ConversationContext:
    session_id: str
    user_id: str
    mode: InteractionMode
    history: tuple[Message, ...] = ()


@dataclass(frozen=True)
class JournalAction:
    id: str
    description: str
    status: ActionStatus
    notes: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class JournalEntry:
    id: str
    session_id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    problem_summary: str = ""
    action_plan: tuple[JournalAction, ...] = field(default_factory=tuple)
    reflection: str = ""
    mood_before: str = ""
    mood_after: str = ""


@dataclass(frozen=True)
class SessionTimeline:
    session: Session
    messages: list[Message]

    @property
    def has_dangling_user_turn(self) -> bool:
        """True when the newest message is a user turn that never got a reply."""
        return bool(self.messages) and self.messages[-1].author == Role.USER


@dataclass(frozen=True)
class SendMessageResult:
    user_message: Message
    agent_message: Message
