from __future__ import annotations

import asyncio
from collections.abc import Awaitable

from loguru import logger
from tenacity import RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from farum_agent.errors import GenerationError

MAX_ATTEMPTS = 5


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.bind(component="provider").warning(
        f"generation call failed with {type(error).__name__ if error else 'unknown error'}, "
        f"retry {retry_state.attempt_number}/{MAX_ATTEMPTS} in {delay:.0f}s"
    )


def default_retry_kwargs(transient: tuple[type[Exception], ...]) -> dict:
    """tenacity settings shared by the remote providers: exponential back-off on ``transient`` errors."""
    return {
        "retry": retry_if_exception_type(transient),
        "wait": wait_exponential(multiplier=2, min=2, max=60),
        "stop": stop_after_attempt(MAX_ATTEMPTS),
        "before_sleep": _log_retry,
        "reraise": True,
    }


async def with_timeout(call: Awaitable[str], timeout_seconds: float | None, provider: str) -> str:
    if not timeout_seconds or timeout_seconds <= 0:
        return await call
    try:
        return await asyncio.wait_for(call, timeout_seconds)
    except TimeoutError as ex:
        raise GenerationError(f"{provider} generation timed out after {timeout_seconds}s") from ex


def require_text(text: str | None, provider: str) -> str:
    if text is None or not text.strip():
        raise GenerationError(f"{provider} returned an empty reply")
    return text
