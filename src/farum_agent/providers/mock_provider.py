from farum_agent.models import ConversationContext


class MockProvider:
    """Offline generator for local mode: echoes the last paragraph of the prompt."""

    async def generate_reply(self, prompt: str, context: ConversationContext) -> str:
        focus = prompt.strip().rsplit("\n\n", 1)[-1].strip()
        return f'I hear you. You said "{focus}". Tell me a bit more about how that makes you feel.'
