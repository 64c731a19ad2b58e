import anthropic
from loguru import logger
from tenacity import retry

from farum_agent.errors import GenerationError
from farum_agent.models import ConversationContext
from farum_agent.prompts import build_prompt
from farum_agent.providers.common import default_retry_kwargs, require_text, with_timeout


class AnthropicProvider:
    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        max_tokens: int = 512,
        temperature: float = 0.6,
        timeout_seconds: float | None = None,
    ):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_seconds = timeout_seconds

    async def generate_reply(self, prompt: str, context: ConversationContext) -> str:
        rendered = build_prompt(prompt, context)
        try:
            text = await with_timeout(
                self._create_message(rendered.system, rendered.user),
                self._timeout_seconds,
                "anthropic",
            )
        except anthropic.AnthropicError as ex:
            raise GenerationError(f"anthropic generate reply: {ex}") from ex
        return require_text(text, "anthropic")

    @retry(**default_retry_kwargs((
        anthropic.RateLimitError,
        anthropic.APIConnectionError,
        anthropic.APITimeoutError,
    )))
    async def _create_message(self, system_prompt: str, user_content: str) -> str:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_tokens}")
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_content}],
        )
        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        return "".join(block.text for block in response.content if block.type == "text")
