from loguru import logger

from farum_agent.agentflow.stage import StageInput, StageOutput
from farum_agent.provider import ReplyGenerator

_TEMPLATE = """\
You are Farum's Listener agent. Your job is to carefully listen, clarify the \
user's concern, and restate it in a clear, empathetic way.

User: {text}"""


class ListenerAgent:
    """Restates and clarifies the user's concern."""

    def __init__(self, generator: ReplyGenerator, *, log=None):
        self._generator = generator
        self._log = (log or logger).bind(agent=self.name)

    @property
    def name(self) -> str:
        return "listener"

    async def run(self, stage_input: StageInput) -> StageOutput:
        self._log.info("listener agent running")
        try:
            reply = await self._generator.generate_reply(_TEMPLATE.format(text=stage_input.text), stage_input.context)
        except Exception as ex:
            self._log.error(f"listener agent error: {ex}")
            raise
        self._log.info("listener agent success")
        return StageOutput(text=reply, context=stage_input.context)
