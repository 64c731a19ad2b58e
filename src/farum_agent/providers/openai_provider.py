import openai
from loguru import logger
from tenacity import retry

from farum_agent.errors import GenerationError
from farum_agent.models import ConversationContext
from farum_agent.prompts import build_prompt
from farum_agent.providers.common import default_retry_kwargs, require_text, with_timeout


class OpenAIProvider:
    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        max_tokens: int = 512,
        temperature: float = 0.6,
        timeout_seconds: float | None = None,
    ):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_seconds = timeout_seconds

    async def generate_reply(self, prompt: str, context: ConversationContext) -> str:
        rendered = build_prompt(prompt, context)
        try:
            text = await with_timeout(
                self._create_completion(rendered.system, rendered.user),
                self._timeout_seconds,
                "openai",
            )
        except openai.OpenAIError as ex:
            raise GenerationError(f"openai generate reply: {ex}") from ex
        return require_text(text, "openai")

    @retry(**default_retry_kwargs((
        openai.RateLimitError,
        openai.APIConnectionError,
        openai.APITimeoutError,
    )))
    async def _create_completion(self, system_prompt: str, user_content: str) -> str:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_tokens}")
        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        )
        if not response.choices:
            return ""
        text = response.choices[0].message.content or ""
        logger.debug(f"API response: finish_reason={response.choices[0].finish_reason}, len={len(text)}")
        return text
