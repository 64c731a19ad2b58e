from loguru import logger

from farum_agent.agentflow.stage import StageInput, StageOutput
from farum_agent.provider import ReplyGenerator

_TEMPLATE = """\
You are Farum's Planner agent. The Listener agent has clarified the user's concern.
Now your job is to create a short, concrete action plan with 2-4 steps that the user can follow.
Be realistic, kind and practical.

Previous agent output:
{text}"""


class PlannerAgent:
    """Turns the clarified concern into a short list of concrete steps."""

    def __init__(self, generator: ReplyGenerator, *, log=None):
        self._generator = generator
        self._log = (log or logger).bind(agent=self.name)

    @property
    def name(self) -> str:
        return "planner"

    async def run(self, stage_input: StageInput) -> StageOutput:
        self._log.info("planner agent running")
        try:
            reply = await self._generator.generate_reply(
                _TEMPLATE.format(text=stage_input.text),
                stage_input.context,
            )
        except Exception as ex:
            self._log.error(f"planner agent error: {ex}")
            raise
        self._log.info("planner agent success")
        return StageOutput(text=reply, context=stage_input.context)
