from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from farum_agent.agentflow.orchestrator import Orchestrator, build_default_pipeline
from farum_agent.app_config import AppConfig, RuntimeEnv
from farum_agent.errors import ConfigurationError
from farum_agent.events import EventSink, LogEventSink
from farum_agent.logging_config import setup_logging
from farum_agent.provider import ReplyGenerator, create_provider
from farum_agent.services.conversation_service import ConversationService
from farum_agent.services.journal_service import JournalService
from farum_agent.storage import (
    InMemoryJournalStore,
    InMemoryMessageStore,
    InMemorySessionStore,
    JournalStore,
    MessageStore,
    SessionStore,
    SqliteEventSink,
    SqliteStore,
)
from farum_agent.tools.journal_tool import JournalTool


@dataclass
class AppRuntime:
    conversation: ConversationService
    journal: JournalService
    orchestrator: Orchestrator
    generator: ReplyGenerator
    sqlite_store: SqliteStore | None
    log_descriptions: list[str]

    def close(self) -> None:
        if self.sqlite_store is not None:
            self.sqlite_store.close()


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    if app.provider_name in ("anthropic", "openai") and not env.provider_api_key:
        raise ConfigurationError(f"{env.provider_env_var} environment variable is required.")

    generator = create_provider(
        app.provider_name,
        env.provider_api_key,
        model=app.model,
        max_tokens=app.max_tokens,
        temperature=app.temperature,
        timeout_seconds=app.generation_timeout_seconds,
    )

    sqlite_store: SqliteStore | None = None
    session_store: SessionStore
    message_store: MessageStore
    journal_store: JournalStore
    events: EventSink

    if app.storage_backend == "sqlite":
        db_path = Path(app.sqlite_db_path)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path
        sqlite_store = SqliteStore(str(db_path))
        session_store = message_store = journal_store = sqlite_store
        events = SqliteEventSink(sqlite_store)
    elif app.storage_backend == "memory":
        session_store = InMemorySessionStore()
        message_store = InMemoryMessageStore()
        journal_store = InMemoryJournalStore()
        events = LogEventSink()
    else:
        raise ConfigurationError(f"Unknown storage backend: {app.storage_backend!r}. Supported: 'memory', 'sqlite'")

    journal_tool = JournalTool(journal_store) if app.journal_enabled else None
    orchestrator = build_default_pipeline(generator, journal_tool, events=events)

    conversation = ConversationService(
        session_store,
        message_store,
        orchestrator,
        history_window=app.history_window,
        events=events,
    )
    journal = JournalService(journal_store if app.journal_enabled else None)

    logger.info(
        f"Runtime ready: provider={app.provider_name}, storage={app.storage_backend}, "
        f"agents={orchestrator.stage_names}"
    )

    return AppRuntime(
        conversation=conversation,
        journal=journal,
        orchestrator=orchestrator,
        generator=generator,
        sqlite_store=sqlite_store,
        log_descriptions=log_descriptions,
    )
