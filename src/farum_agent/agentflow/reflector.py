from loguru import logger

from farum_agent.agentflow.stage import StageInput, StageOutput
from farum_agent.events import EventSink, NullEventSink, safe_emit
from farum_agent.provider import ReplyGenerator
from farum_agent.tool import Tool, ToolContext

_TEMPLATE = """\
You are Farum's Reflector agent. The Planner agent proposed an action plan.
Your job is to close the conversation with a short reflective message that helps the user
connect emotionally with the plan, and maybe ask 1 gentle question for journaling.

Previous agent output:
{text}"""


class ReflectorAgent:
    """Closes the turn with a reflection and records it through the journal tool.

    The journal call is best effort: its failure is logged and emitted as a
    ``journal.failed`` event but never fails the stage.
    """

    def __init__(
        self,
        generator: ReplyGenerator,
        journal_tool: Tool | None = None,
        *,
        events: EventSink | None = None,
        log=None,
    ):
        self._generator = generator
        self._journal_tool = journal_tool
        self._events = events or NullEventSink()
        self._log = (log or logger).bind(agent=self.name)

    @property
    def name(self) -> str:
        return "reflector"

    async def run(self, stage_input: StageInput) -> StageOutput:
        self._log.info("reflector agent running")
        try:
            reply = await self._generator.generate_reply(
                _TEMPLATE.format(text=stage_input.text),
                stage_input.context,
            )
        except Exception as ex:
            self._log.error(f"reflector agent error: {ex}")
            raise

        if self._journal_tool is not None:
            await self._record_journal(stage_input, reply)

        self._log.info("reflector agent success")
        return StageOutput(text=reply, context=stage_input.context)

    async def _record_journal(self, stage_input: StageInput, reply: str) -> None:
        context = stage_input.context
        tool_context = ToolContext(user_id=context.user_id, session_id=context.session_id)
        tool_input = {
            "problem_summary": "",
            "reflection": reply,
            "mood_before": "",
            "mood_after": "",
            "actions": [],
        }
        try:
            result = await self._journal_tool.call(tool_context, tool_input)
        except Exception as ex:
            self._log.bind(session_id=context.session_id).warning(
                f"Journal tool '{self._journal_tool.name}' failed, reply not affected: {ex}"
            )
            safe_emit(
                self._events,
                context.session_id,
                "journal.failed",
                {"tool_name": self._journal_tool.name, "error": str(ex)},
                self._log,
            )
            return
        safe_emit(
            self._events,
            context.session_id,
            "journal.recorded",
            {"tool_name": self._journal_tool.name, "entry_id": result.get("entry_id")},
            self._log,
        )
