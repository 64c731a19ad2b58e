from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from loguru import logger

from farum_agent.agentflow.orchestrator import Orchestrator
from farum_agent.errors import NotFoundError, StorageError, ValidationError
from farum_agent.events import EventSink, NullEventSink, safe_emit
from farum_agent.ids import IdGenerator, utc_now
from farum_agent.models import (
    ConversationContext,
    InteractionMode,
    Message,
    Role,
    SendMessageResult,
    Session,
    SessionTimeline,
)
from farum_agent.storage.ports import MessageStore, SessionStore

WELCOME_TEXT = "Hi, I'm Farum. What would you like to work on today?"
DEFAULT_HISTORY_WINDOW = 20


class ConversationService:
    """Owns the session and message lifecycle and runs the reply pipeline.

    ``send_message`` is not transactional: the user message is
    written before the pipeline runs, so a failure later in the turn leaves a
    user message without a reply. ``SessionTimeline.has_dangling_user_turn``
    lets callers detect that state.
    """

    def __init__(
        self,
        session_store: SessionStore,
        message_store: MessageStore,
        orchestrator: Orchestrator,
        *,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        now: Callable[[], datetime] = utc_now,
        ids: IdGenerator | None = None,
        events: EventSink | None = None,
        log=None,
    ):
        self._sessions = session_store
        self._messages = message_store
        self._orchestrator = orchestrator
        self._history_window = history_window
        self._now = now
        self._ids = ids or IdGenerator()
        self._events = events or NullEventSink()
        self._log = (log or logger).bind(component="conversation")

    async def start_session(
        self,
        user_id: str,
        preferred_mode: InteractionMode | str | None = None,
        title: str = "",
        *,
        request_id: str = "",
    ) -> Session:
        if not user_id:
            raise ValidationError("user_id is required")

        mode = InteractionMode.parse(preferred_mode)
        log = self._log.bind(user_id=user_id, preferred_mode=str(mode), request_id=request_id)
        log.info("starting new session")

        now = self._now()
        session = Session(
            id=self._ids.new_id(),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            preferred_mode=mode,
            title=title.strip() or _default_title(now),
        )
        await self._store("create session", self._sessions.create_session(session), log)

        welcome = Message(
            id=self._ids.new_id(),
            session_id=session.id,
            author=Role.AGENT,
            text=WELCOME_TEXT,
            mode=session.preferred_mode,
            created_at=now,
            content_type="welcome",
        )
        await self._store("append welcome message", self._messages.append_message(welcome), log)
        self._emit_appended(welcome, log)

        safe_emit(self._events, session.id, "session.started", {"user_id": user_id, "mode": str(mode)}, log)
        log.bind(session_id=session.id).info("session started")
        return session

    async def send_message(
        self,
        session_id: str,
        user_id: str,
        text: str,
        *,
        request_id: str = "",
    ) -> SendMessageResult:
        if not text or not text.strip():
            raise ValidationError("message text is required")

        session = await self._require_session(session_id)
        log = self._log.bind(
            session_id=session.id,
            user_id=session.user_id,
            mode=str(session.preferred_mode),
            request_id=request_id,
        )
        if user_id and user_id != session.user_id:
            log.warning(f"user {user_id!r} is sending to a session owned by {session.user_id!r}")
        log.info("sending message")

        user_message = Message(
            id=self._ids.new_id(),
            session_id=session.id,
            author=Role.USER,
            text=text,
            mode=session.preferred_mode,
            created_at=max(self._now(), session.updated_at),
        )
        await self._store("append user message", self._messages.append_message(user_message), log)
        self._emit_appended(user_message, log)

        history = await self._store(
            "load history",
            self._messages.get_messages_by_session(session.id, self._history_window),
            log,
        )
        context = ConversationContext(
            session_id=session.id,
            user_id=session.user_id,
            mode=session.preferred_mode,
            history=tuple(history),
        )

        try:
            reply_text = await self._orchestrator.run(text, context)
        except Exception as ex:
            log.error(f"orchestrator failed: {ex}")
            raise

        agent_message = Message(
            id=self._ids.new_id(),
            session_id=session.id,
            author=Role.AGENT,
            text=reply_text,
            mode=session.preferred_mode,
            created_at=max(self._now(), user_message.created_at),
            reply_to=user_message.id,
            content_type="text",
        )
        await self._store("append agent message", self._messages.append_message(agent_message), log)
        self._emit_appended(agent_message, log)

        updated = replace(session, updated_at=max(self._now(), agent_message.created_at))
        await self._store("update session", self._sessions.update_session(updated), log)
        safe_emit(self._events, session.id, "session.updated", {"updated_at": updated.updated_at.isoformat()}, log)

        log.info("send message completed")
        return SendMessageResult(user_message=user_message, agent_message=agent_message)

    async def get_session_timeline(self, session_id: str, limit: int = 0) -> SessionTimeline:
        log = self._log.bind(session_id=session_id, limit=limit)
        session = await self._require_session(session_id)
        messages = await self._store(
            "get messages",
            self._messages.get_messages_by_session(session_id, limit),
            log,
        )
        log.info(f"fetched session timeline ({len(messages)} message(s))")
        return SessionTimeline(session=session, messages=list(messages))

    async def list_sessions(self, user_id: str, limit: int = 0) -> list[Session]:
        if not user_id:
            raise ValidationError("user_id is required")
        return await self._store(
            "list sessions",
            self._sessions.list_sessions_by_user(user_id, limit),
            self._log.bind(user_id=user_id),
        )

    async def _require_session(self, session_id: str) -> Session:
        session = await self._store("get session", self._sessions.get_session(session_id), self._log)
        if session is None:
            raise NotFoundError(f"session not found: {session_id}")
        return session

    async def _store(self, operation: str, call, log):
        try:
            return await call
        except StorageError as ex:
            log.error(f"failed to {operation}: {ex}")
            raise
        except Exception as ex:
            log.error(f"failed to {operation}: {ex}")
            raise StorageError(f"{operation}: {ex}") from ex

    def _emit_appended(self, message: Message, log) -> None:
        safe_emit(
            self._events,
            message.session_id,
            "message.appended",
            {"message_id": message.id, "author": str(message.author)},
            log,
        )


def _default_title(created_at: datetime) -> str:
    return f"Session {created_at.isoformat(timespec='minutes')[:16].replace('T', ' ')}"
