from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from adpilot.channel import Channel
from adpilot.conversation.library import MediaLibrary
from adpilot.conversation.memory import ConversationMemory
from adpilot.integrations.base import AdPlatform, Catalog, Copywriter, MediaGenerator
from adpilot.messages import Content, TextMessage
from adpilot.workflows.models import MenuData, UserSession, WorkflowData, WorkflowKind


@dataclass
class WorkflowDeps:
    catalog: Catalog
    media: MediaGenerator
    ads: AdPlatform
    copywriter: Copywriter
    memory: ConversationMemory
    library: MediaLibrary
    channel: Channel


@dataclass
class StepResult:
    messages: list[Content] = field(default_factory=list)
    finished: bool = False
    next_workflow: WorkflowKind | None = None
    prefill: dict[str, Any] = field(default_factory=dict)

    def say(self, text: str) -> "StepResult":
        self.messages.append(TextMessage(text))
        return self

    def extend(self, other: "StepResult") -> "StepResult":
        self.messages.extend(other.messages)
        return self

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.messages if isinstance(m, TextMessage)]


class Workflow(ABC):
    """One multi-step conversation.

    ``handle`` mutates the session in place (step and data); the engine owns
    loading and saving it. ``render`` must stay side-effect free so that
    going back can re-show a step from the accumulated data alone.
    """

    kind: ClassVar[WorkflowKind]
    first_step: ClassVar[int] = 1

    def __init__(self, deps: WorkflowDeps):
        self.deps = deps

    @abstractmethod
    def new_data(self, **prefill: Any) -> WorkflowData: ...

    @abstractmethod
    def render(self, session: UserSession) -> str: ...

    @abstractmethod
    async def handle(self, user_id: str, session: UserSession, text: str) -> StepResult: ...

    async def begin(self, user_id: str, session: UserSession) -> StepResult:
        return StepResult().say(self.render(session))


class HintWorkflow(Workflow):
    """Menu-level entry that only shows a hint and ends."""

    hint: ClassVar[str]
    first_step = 0

    def new_data(self, **prefill: Any) -> WorkflowData:
        return MenuData()

    def render(self, session: UserSession) -> str:
        return self.hint

    async def begin(self, user_id: str, session: UserSession) -> StepResult:
        return StepResult(finished=True).say(self.hint)

    async def handle(self, user_id: str, session: UserSession, text: str) -> StepResult:
        return StepResult(finished=True).say(self.hint)
