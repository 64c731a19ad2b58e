import unittest

from farum_agent.models import ConversationContext, InteractionMode, Message, Role
from farum_agent.prompts import build_prompt, build_system_prompt
from tests.support import StepClock


class PromptTests(unittest.TestCase):
    def test_system_prompt_varies_by_mode(self) -> None:
        prompts = {mode: build_system_prompt(mode) for mode in InteractionMode}
        self.assertEqual(3, len(set(prompts.values())))
        self.assertTrue(all("Farum" in p for p in prompts.values()))
        self.assertIn("action-plan", prompts[InteractionMode.ACTION_PLAN])

    def test_without_history_only_new_message(self) -> None:
        prompt = build_prompt("hello", ConversationContext("s1", "u1", InteractionMode.CHECK_IN))
        self.assertEqual("New user message:\nhello", prompt.user)

    def test_history_rendered_in_order(self) -> None:
        clock = StepClock()
        history = (
            Message("m1", "s1", Role.AGENT, "welcome", InteractionMode.DEEP_DIVE, clock()),
            Message("m2", "s1", Role.USER, "tired", InteractionMode.DEEP_DIVE, clock()),
        )
        prompt = build_prompt("stage text", ConversationContext("s1", "u1", InteractionMode.DEEP_DIVE, history))

        self.assertEqual(
            "Conversation so far:\nassistant: welcome\nuser: tired\n\nNew user message:\nstage text",
            prompt.user,
        )
        self.assertIn("deep-dive", prompt.system)


if __name__ == "__main__":
    unittest.main()
