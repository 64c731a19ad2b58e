from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_session: Callable[[str], Awaitable[None]],
        on_history: Callable[[str], Awaitable[None]],
        on_journal: Callable[[str], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_session = on_session
        self._on_history = on_history
        self._on_journal = on_journal
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            await self._on_help()
            return True
        if trimmed.startswith("/session"):
            await self._on_session(trimmed)
            return True
        if trimmed.startswith("/history"):
            await self._on_history(trimmed)
            return True
        if trimmed.startswith("/journal"):
            await self._on_journal(trimmed)
            return True

        self._on_unknown(trimmed)
        return True


def parse_limit(parts: list[str], index: int, default: int) -> int | None:
    """Optional integer argument at ``parts[index]``; None when it is not a number."""
    if len(parts) <= index:
        return default
    try:
        return int(parts[index])
    except ValueError:
        return None
