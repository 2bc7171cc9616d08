from dataclasses import dataclass


@dataclass(frozen=True)
class Event:
    """Something a user's turn caused. Subscribing to Event receives all of them."""

    user_id: str


@dataclass(frozen=True)
class TurnHandled(Event):
    decision: str
    replies: int
    duration_ms: int


@dataclass(frozen=True)
class CampaignCreated(Event):
    campaign_id: str
    name: str
    daily_budget: float


@dataclass(frozen=True)
class MediaGenerated(Event):
    product_id: str | None
    kind: str
