from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ToolContext:
    user_id: str
    session_id: str
    request_id: str = ""


@runtime_checkable
class Tool(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def call(self, tool_context: ToolContext, tool_input: dict[str, Any]) -> dict[str, Any]: ...
