import asyncio
import unittest
from dataclasses import replace

from farum_agent.agentflow.orchestrator import Orchestrator, build_default_pipeline
from farum_agent.agentflow.stage import StageInput, StageOutput
from farum_agent.errors import ConfigurationError, GenerationError, StageFailedError
from tests.support import FailingStage, RecordingEvents, ScriptedGenerator, SuffixStage, make_context


class _ContextTaggingStage:
    """Rewrites the context so the next stage can prove it received this output."""

    @property
    def name(self) -> str:
        return "tagger"

    async def run(self, stage_input: StageInput) -> StageOutput:
        return StageOutput(text=stage_input.text, context=replace(stage_input.context, user_id="tagged"))


class OrchestratorTests(unittest.TestCase):
    def test_stages_run_in_order_threading_text(self) -> None:
        stages = [SuffixStage("listener"), SuffixStage("planner"), SuffixStage("reflector")]
        orchestrator = Orchestrator(stages)

        reply = asyncio.run(orchestrator.run("X", make_context()))

        self.assertEqual("X-listener-planner-reflector", reply)
        self.assertEqual("X-listener", stages[1].seen[0].text)
        self.assertEqual("X-listener-planner", stages[2].seen[0].text)

    def test_context_output_feeds_next_stage(self) -> None:
        follower = SuffixStage("after")
        orchestrator = Orchestrator([_ContextTaggingStage(), follower])

        asyncio.run(orchestrator.run("X", make_context()))

        self.assertEqual("tagged", follower.seen[0].context.user_id)

    def test_no_stages_is_a_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            asyncio.run(Orchestrator([]).run("X", make_context()))

    def test_failing_stage_aborts_and_names_the_stage(self) -> None:
        cause = GenerationError("backend unavailable")
        last = SuffixStage("reflector")
        orchestrator = Orchestrator([SuffixStage("listener"), FailingStage("planner", cause), last])

        with self.assertRaises(StageFailedError) as ctx:
            asyncio.run(orchestrator.run("X", make_context()))

        self.assertEqual("planner", ctx.exception.stage)
        self.assertIs(cause, ctx.exception.__cause__)
        self.assertIn("planner", str(ctx.exception))
        self.assertEqual([], last.seen)

    def test_stage_completion_is_emitted(self) -> None:
        events = RecordingEvents()
        orchestrator = Orchestrator([SuffixStage("a"), SuffixStage("b")], events=events)

        asyncio.run(orchestrator.run("X", make_context(session_id="s9")))

        self.assertEqual(["stage.completed", "stage.completed"], events.types())
        self.assertEqual(["a", "b"], [payload["stage"] for _, _, payload in events.events])
        self.assertTrue(all(sid == "s9" for sid, _, _ in events.events))

    def test_cancellation_is_not_wrapped(self) -> None:
        generator = ScriptedGenerator(delay=1.0)
        orchestrator = build_default_pipeline(generator)

        async def scenario() -> None:
            task = asyncio.create_task(orchestrator.run("X", make_context()))
            await asyncio.sleep(0.01)
            task.cancel()
            await task

        with self.assertRaises(asyncio.CancelledError):
            asyncio.run(scenario())


class DefaultPipelineTests(unittest.TestCase):
    def test_default_pipeline_is_listener_planner_reflector(self) -> None:
        orchestrator = build_default_pipeline(ScriptedGenerator())
        self.assertEqual(["listener", "planner", "reflector"], orchestrator.stage_names)

    def test_each_stage_builds_on_previous_output(self) -> None:
        generator = ScriptedGenerator()
        context = make_context()
        reply = asyncio.run(build_default_pipeline(generator).run("I feel stuck", context))

        self.assertEqual("reply-3", reply)
        self.assertEqual(3, len(generator.calls))
        self.assertIn("I feel stuck", generator.calls[0][0])
        self.assertIn("reply-1", generator.calls[1][0])
        self.assertNotIn("I feel stuck", generator.calls[1][0])
        self.assertIn("reply-2", generator.calls[2][0])
        self.assertTrue(all(ctx is context for _, ctx in generator.calls))


if __name__ == "__main__":
    unittest.main()
