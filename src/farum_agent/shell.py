from __future__ import annotations

from loguru import logger

from farum_agent.commands.router import CommandRouter, parse_limit
from farum_agent.errors import FarumError
from farum_agent.models import InteractionMode
from farum_agent.services.conversation_service import ConversationService
from farum_agent.services.journal_service import JournalService
from farum_agent.services.session_controller import SessionController


class ChatShell:
    """Terminal front end: routes local commands and forwards chat turns to the service."""

    _LINE_PREFIX = "farum> "

    def __init__(
        self,
        conversation: ConversationService,
        journal: JournalService,
        *,
        user_id: str,
        default_mode: InteractionMode = InteractionMode.CHECK_IN,
    ):
        self._conversation = conversation
        self._journal = journal
        self._user_id = user_id
        self._default_mode = default_mode
        self._active_session_id: str | None = None
        self._controller = SessionController(line_prefix=self._LINE_PREFIX)
        self._router = CommandRouter(
            on_help=self._on_help,
            on_session=self._handle_session_command,
            on_history=self._handle_history_command,
            on_journal=self._handle_journal_command,
            on_unknown=self._on_unknown_command,
        )

    @property
    def active_session_id(self) -> str | None:
        return self._active_session_id

    async def start(self, title: str = "") -> None:
        await self._new_session(self._default_mode, title)

    async def handle(self, user_input: str) -> None:
        if await self._router.try_handle(user_input):
            return
        if self._active_session_id is None:
            await self.start()
        try:
            result = await self._conversation.send_message(self._active_session_id, self._user_id, user_input)
        except FarumError as ex:
            logger.error(f"Turn failed: {ex}")
            print(f"{self._LINE_PREFIX}[Reply failed: {ex}]")
            return
        print(f"{self._LINE_PREFIX}{result.agent_message.text}")

    async def _new_session(self, mode: InteractionMode, title: str) -> None:
        session = await self._conversation.start_session(self._user_id, mode, title)
        self._active_session_id = session.id
        timeline = await self._conversation.get_session_timeline(session.id, 1)
        print(f"{self._LINE_PREFIX}Session: {session.title} [{self._controller.short_id(session.id)}] ({session.preferred_mode})")
        for message in timeline.messages:
            print(f"{self._LINE_PREFIX}{message.text}")

    async def _on_help(self) -> None:
        print(f"{self._LINE_PREFIX}Available commands:")
        print(f"{self._LINE_PREFIX}- /help")
        print(f"{self._LINE_PREFIX}- /session")
        print(f"{self._LINE_PREFIX}- /session new [check_in|deep_dive|action_plan] [title]")
        print(f"{self._LINE_PREFIX}- /session list [limit]")
        print(f"{self._LINE_PREFIX}- /session resume <id>")
        print(f"{self._LINE_PREFIX}- /history [limit]")
        print(f"{self._LINE_PREFIX}- /journal [limit]")

    def _on_unknown_command(self, trimmed: str) -> None:
        print(f"{self._LINE_PREFIX}Unknown local command: {trimmed}")

    async def _handle_session_command(self, command: str) -> None:
        parts = command.split()
        if len(parts) == 1:
            if self._active_session_id is None:
                print(f"{self._LINE_PREFIX}Current session: none")
                return
            timeline = await self._conversation.get_session_timeline(self._active_session_id, 1)
            print(self._controller.format_session_list_entry(timeline.session, active_session_id=self._active_session_id))
            return

        sub = parts[1]
        if sub == "new":
            mode = self._default_mode
            rest = parts[2:]
            if rest and rest[0] in {m.value for m in InteractionMode}:
                mode = InteractionMode(rest[0])
                rest = rest[1:]
            await self._new_session(mode, " ".join(rest))
            return

        if sub == "list":
            limit = parse_limit(parts, 2, 20)
            if limit is None:
                print(f"{self._LINE_PREFIX}Usage: /session list [limit]")
                return
            sessions = await self._conversation.list_sessions(self._user_id, limit)
            if not sessions:
                print(f"{self._LINE_PREFIX}No sessions yet.")
            for session in sessions:
                print(self._controller.format_session_list_entry(session, active_session_id=self._active_session_id))
            return

        if sub == "resume" and len(parts) == 3:
            try:
                timeline = await self._conversation.get_session_timeline(parts[2], 5)
            except FarumError as ex:
                print(f"{self._LINE_PREFIX}{ex}")
                return
            self._active_session_id = timeline.session.id
            print(f"{self._LINE_PREFIX}Resumed: {timeline.session.title}")
            for message in timeline.messages:
                print(self._controller.format_message(message))
            if timeline.has_dangling_user_turn:
                print(f"{self._LINE_PREFIX}(the last message never got a reply)")
            return

        print(f"{self._LINE_PREFIX}Usage: /session [new|list|resume]")

    async def _handle_history_command(self, command: str) -> None:
        if self._active_session_id is None:
            print(f"{self._LINE_PREFIX}No active session.")
            return
        limit = parse_limit(command.split(), 1, 0)
        if limit is None:
            print(f"{self._LINE_PREFIX}Usage: /history [limit]")
            return
        timeline = await self._conversation.get_session_timeline(self._active_session_id, limit)
        for message in timeline.messages:
            print(self._controller.format_message(message))

    async def _handle_journal_command(self, command: str) -> None:
        limit = parse_limit(command.split(), 1, 0)
        if limit is None:
            print(f"{self._LINE_PREFIX}Usage: /journal [limit]")
            return
        entries = await self._journal.get_user_journal(self._user_id, limit)
        if not entries:
            print(f"{self._LINE_PREFIX}Journal is empty.")
        for entry in entries:
            for line in self._controller.format_journal_entry(entry):
                print(line)
