from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar

from adpilot.catalog.models import Product
from adpilot.conversation.models import HistoryEntry
from adpilot.integrations.models import (
    AdCopy,
    Audience,
    CampaignResult,
    CampaignSpec,
    CampaignSummary,
    GeneratedAsset,
    MediaKind,
    MediaRequest,
)
from adpilot.messages import Content


class Catalog(ABC):
    name: ClassVar[str]

    @abstractmethod
    async def search(self, query: str) -> list[Product]: ...

    @abstractmethod
    async def list_products(self, limit: int) -> list[Product]: ...

    @abstractmethod
    async def get(self, product_id: str) -> Product | None: ...


class MediaGenerator(ABC):
    name: ClassVar[str]

    @abstractmethod
    async def generate(self, kind: MediaKind, request: MediaRequest) -> GeneratedAsset: ...


class AdPlatform(ABC):
    name: ClassVar[str]

    @abstractmethod
    async def create_campaign(self, spec: CampaignSpec) -> CampaignResult: ...

    @abstractmethod
    async def list_campaigns(self) -> list[CampaignSummary]: ...

    @abstractmethod
    async def set_status(self, campaign_id: str, status: str) -> None: ...

    @abstractmethod
    async def set_daily_budget(self, campaign_id: str, amount: float) -> None: ...


class Copywriter(ABC):
    @abstractmethod
    async def audience(self, product: Product) -> Audience: ...

    @abstractmethod
    async def ad_copy(self, product: Product) -> AdCopy: ...

    @abstractmethod
    async def reply(self, history: Sequence[HistoryEntry], text: str) -> str: ...


class Transport(ABC):
    channel: ClassVar[str]

    @abstractmethod
    async def send(self, user_id: str, content: Content) -> None: ...
