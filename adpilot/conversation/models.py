from collections import deque
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from adpilot.catalog.models import Product


def _now() -> datetime:
    return datetime.now(UTC)


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class HistoryEntry(BaseModel):
    role: Role
    text: str
    timestamp: datetime = Field(default_factory=_now)


class ConversationContext(BaseModel):
    history: deque[HistoryEntry] = Field(default_factory=deque)
    last_entity: Product | None = None
    last_shown_list: list[Product] | None = None
    pending_candidates: list[Product] | None = None
    last_access: datetime = Field(default_factory=_now)


class PendingConfirmation(BaseModel):
    command: str
    args: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)

    def describe(self) -> str:
        return " ".join([f"/{self.command}", *self.args])
