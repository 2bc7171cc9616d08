from datetime import UTC, datetime

from pydantic import BaseModel, Field

from adpilot.catalog.models import Product
from adpilot.constants import MEDIA_HISTORY_LIMIT
from adpilot.integrations.models import GeneratedAsset, MediaKind, MediaRequest
from adpilot.logging import get_logger
from adpilot.store import InMemoryStore, SessionStore

_logger = get_logger(__name__)


class RecentMedia(BaseModel):
    """One generated asset plus the request that produced it."""

    asset: GeneratedAsset
    prompt: str = ""
    aspect_ratio: str | None = None
    duration_seconds: int | None = None
    product: Product | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def kind(self) -> MediaKind:
        return self.asset.kind

    @classmethod
    def from_request(cls, asset: GeneratedAsset, request: MediaRequest) -> "RecentMedia":
        return cls(
            asset=asset,
            prompt=request.prompt,
            aspect_ratio=request.aspect_ratio,
            duration_seconds=request.duration_seconds,
            product=request.product,
        )

    def request(self) -> MediaRequest:
        return MediaRequest(
            product=self.product,
            prompt=self.prompt,
            aspect_ratio=self.aspect_ratio,
            duration_seconds=self.duration_seconds,
        )


class MediaShelf(BaseModel):
    items: list[RecentMedia] = Field(default_factory=list)


class MediaLibrary:
    """Last few assets generated for each user, oldest first."""

    def __init__(self, store: SessionStore[MediaShelf] | None = None, limit: int = MEDIA_HISTORY_LIMIT):
        self.store = store or InMemoryStore[MediaShelf]()
        self.limit = limit

    async def remember(self, user_id: str, item: RecentMedia) -> None:
        shelf = await self.store.get(user_id) or MediaShelf()
        shelf.items.append(item)
        del shelf.items[: -self.limit]
        await self.store.set(user_id, shelf)
        _logger.debug("Stored %s for %s (%d kept)", item.kind, user_id, len(shelf.items))

    async def recent(self, user_id: str) -> list[RecentMedia]:
        shelf = await self.store.get(user_id)
        return list(shelf.items) if shelf else []

    async def latest(self, user_id: str) -> RecentMedia | None:
        items = await self.recent(user_id)
        return items[-1] if items else None
