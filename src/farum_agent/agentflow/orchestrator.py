from __future__ import annotations

import time

from loguru import logger

from farum_agent.agentflow.listener import ListenerAgent
from farum_agent.agentflow.planner import PlannerAgent
from farum_agent.agentflow.reflector import ReflectorAgent
from farum_agent.agentflow.stage import Stage, StageInput
from farum_agent.errors import ConfigurationError, StageFailedError
from farum_agent.events import EventSink, NullEventSink, safe_emit
from farum_agent.models import ConversationContext
from farum_agent.provider import ReplyGenerator
from farum_agent.tool import Tool


class Orchestrator:
    """Runs an ordered list of stages, each refining the previous stage's text."""

    def __init__(self, stages: list[Stage], *, events: EventSink | None = None, log=None):
        self._stages = list(stages)
        self._events = events or NullEventSink()
        self._log = (log or logger).bind(component="orchestrator")

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    async def run(self, initial_text: str, context: ConversationContext) -> str:
        if not self._stages:
            raise ConfigurationError("no agents configured in orchestrator")

        log = self._log.bind(session_id=context.session_id, user_id=context.user_id)
        log.info(f"Orchestrator started with {len(self._stages)} agent(s)")

        current = StageInput(text=initial_text, context=context)
        for stage in self._stages:
            start = time.perf_counter()
            log.info(f"agent run start: {stage.name}")
            try:
                output = await stage.run(current)
            except Exception as ex:
                log.error(f"agent {stage.name} failed: {ex}")
                raise StageFailedError(stage.name, ex) from ex

            elapsed_ms = int((time.perf_counter() - start) * 1000)
            log.info(f"agent run end: {stage.name} ({elapsed_ms} ms)")
            safe_emit(
                self._events,
                context.session_id,
                "stage.completed",
                {"stage": stage.name, "elapsed_ms": elapsed_ms},
                log,
            )
            current = StageInput(text=output.text, context=output.context)

        log.info("Orchestrator finished")
        return current.text


def build_default_pipeline(
    generator: ReplyGenerator,
    journal_tool: Tool | None = None,
    *,
    events: EventSink | None = None,
    log=None,
) -> Orchestrator:
    """Listener -> Planner -> Reflector, the reflector writing to the journal tool when given."""
    return Orchestrator(
        [
            ListenerAgent(generator, log=log),
            PlannerAgent(generator, log=log),
            ReflectorAgent(generator, journal_tool, events=events, log=log),
        ],
        events=events,
        log=log,
    )
