from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from farum_agent.models import ConversationContext


@dataclass(frozen=True)
class StageInput:
    text: str
    context: ConversationContext


@dataclass(frozen=True)
class StageOutput:
    text: str
    context: ConversationContext


@runtime_checkable
class Stage(Protocol):
    @property
    def name(self) -> str: ...

    async def run(self, stage_input: StageInput) -> StageOutput: ...
