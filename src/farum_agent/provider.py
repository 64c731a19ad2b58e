from typing import Protocol, runtime_checkable

from farum_agent.models import ConversationContext


@runtime_checkable
class ReplyGenerator(Protocol):
    async def generate_reply(self, prompt: str, context: ConversationContext) -> str:
        """Produce reply text for ``prompt`` given the conversation context.

        Raises GenerationError when the backend fails or returns no text.
        """
        ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    *,
    model: str = "",
    max_tokens: int = 512,
    temperature: float = 0.6,
    timeout_seconds: float | None = None,
) -> ReplyGenerator:
    """Factory: create a ReplyGenerator by name."""
    name = provider_name.strip().lower()
    if name == "mock":
        from farum_agent.providers.mock_provider import MockProvider
        return MockProvider()
    if name == "anthropic":
        from farum_agent.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(
            api_key,
            model=model or "claude-sonnet-4-5-20250929",
            max_tokens=max_tokens,
            temperature=temperature,
            timeout_seconds=timeout_seconds,
        )
    if name == "openai":
        from farum_agent.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(
            api_key,
            model=model or "gpt-4o-mini",
            max_tokens=max_tokens,
            temperature=temperature,
            timeout_seconds=timeout_seconds,
        )
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'mock', 'anthropic', 'openai'")
