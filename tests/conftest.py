import asyncio

import pytest

from adpilot.assistant import Assistant
from adpilot.catalog.models import Product
from adpilot.channel import Channel
from adpilot.commands import CommandDispatcher
from adpilot.config import Config
from adpilot.conversation.confirmation import ConfirmationGate
from adpilot.conversation.library import MediaLibrary
from adpilot.conversation.memory import ConversationMemory
from adpilot.errors import CollaboratorError
from adpilot.integrations.base import AdPlatform, Catalog, Copywriter, MediaGenerator, Transport
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
from adpilot.intents import FreeformHandler
from adpilot.router import CommandRouter
from adpilot.workflows.base import WorkflowDeps
from adpilot.workflows.engine import WorkflowEngine

PRODUCTS = [
    Product(id=1, name="Shampoo", sku="SH-001", price="12"),
    Product(id=2, name="Moringa Shampoo", sku="MS-002", price="15"),
    Product(id=3, name="Moringa Conditioner", sku="CO-003", price="18"),
    Product(id=4, name="Argan Oil Serum", sku="SE-004", price="25"),
    Product(id=5, name="Repair Mask Deep", sku="MA-005", price="22"),
    Product(id=6, name="Argan Curl Cream", sku="CR-006", price="20"),
]


class FakeCatalog(Catalog):
    name = "fake-catalog"

    def __init__(self, products: list[Product] | None = None):
        self.products = list(PRODUCTS if products is None else products)
        self.fail = False
        self.searches: list[str] = []

    def _check(self) -> None:
        if self.fail:
            raise CollaboratorError(self.name, "catalog offline")

    async def search(self, query: str) -> list[Product]:
        self._check()
        self.searches.append(query)
        words = query.lower().split()
        return [p for p in self.products if any(w in p.name.lower() or w == p.sku.lower() for w in words)]

    async def list_products(self, limit: int) -> list[Product]:
        self._check()
        return self.products[:limit]

    async def get(self, product_id: str) -> Product | None:
        self._check()
        return next((p for p in self.products if p.id == product_id), None)


class FakeMediaGenerator(MediaGenerator):
    name = "fake-media"

    def __init__(self):
        self.fail = False
        self.calls: list[tuple[MediaKind, MediaRequest]] = []

    async def generate(self, kind: MediaKind, request: MediaRequest) -> GeneratedAsset:
        self.calls.append((kind, request))
        if self.fail:
            raise CollaboratorError(self.name, "quota exceeded")
        match kind:
            case MediaKind.VIDEO:
                return GeneratedAsset(kind=kind, data=b"video", mime_type="video/mp4")
            case MediaKind.IMAGE_PACK:
                return GeneratedAsset(kind=kind, data=b"square", mime_type="image/png", variants=[b"portrait", b"story"])
            case _:
                return GeneratedAsset(kind=kind, data=b"image", mime_type="image/png")


class FakeAdPlatform(AdPlatform):
    name = "fake-ads"

    def __init__(self):
        self.fail = False
        self.created: list[CampaignSpec] = []
        self.status_calls: list[tuple[str, str]] = []
        self.budget_calls: list[tuple[str, float]] = []

    def _check(self) -> None:
        if self.fail:
            raise CollaboratorError(self.name, "ad account disabled")

    async def create_campaign(self, spec: CampaignSpec) -> CampaignResult:
        self._check()
        self.created.append(spec)
        n = len(self.created)
        return CampaignResult(campaign_id=f"cmp_{n}", ad_set_id=f"adset_{n}", ad_id=f"ad_{n}")

    async def list_campaigns(self) -> list[CampaignSummary]:
        self._check()
        return [
            CampaignSummary(id=f"cmp_{i}", name=spec.name, status="PAUSED", daily_budget=spec.daily_budget)
            for i, spec in enumerate(self.created, 1)
        ]

    async def set_status(self, campaign_id: str, status: str) -> None:
        self._check()
        self.status_calls.append((campaign_id, status))

    async def set_daily_budget(self, campaign_id: str, amount: float) -> None:
        self._check()
        self.budget_calls.append((campaign_id, amount))


class FakeCopywriter(Copywriter):
    def __init__(self):
        self.fail = False
        self.delay = 0.0
        self.replies: list[tuple[list, str]] = []

    def _check(self) -> None:
        if self.fail:
            raise CollaboratorError("copywriter", "model unavailable")

    async def audience(self, product: Product) -> Audience:
        self._check()
        return Audience(age_min=18, age_max=35, genders=[], interests=["Hair care"])

    async def ad_copy(self, product: Product) -> AdCopy:
        self._check()
        return AdCopy(headline=f"Meet {product.name}", text="Fresh hair every day")

    async def reply(self, history, text: str) -> str:
        self._check()
        if self.delay:
            await asyncio.sleep(self.delay)
        self.replies.append((list(history), text))
        return f"echo: {text}"


class FakeTransport(Transport):
    channel = "fake"

    def __init__(self):
        self.fail = False
        self.sent: list[tuple[str, object]] = []

    async def send(self, user_id: str, content) -> None:
        if self.fail:
            raise CollaboratorError(self.channel, "transport down")
        self.sent.append((user_id, content))


@pytest.fixture
def config() -> Config:
    return Config(_env_file=None)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def media() -> FakeMediaGenerator:
    return FakeMediaGenerator()


@pytest.fixture
def ads() -> FakeAdPlatform:
    return FakeAdPlatform()


@pytest.fixture
def copywriter() -> FakeCopywriter:
    return FakeCopywriter()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def channel() -> Channel:
    return Channel()


@pytest.fixture
def memory() -> ConversationMemory:
    return ConversationMemory()


@pytest.fixture
def library() -> MediaLibrary:
    return MediaLibrary()


@pytest.fixture
def deps(catalog, media, ads, copywriter, memory, library, channel) -> WorkflowDeps:
    return WorkflowDeps(
        catalog=catalog,
        media=media,
        ads=ads,
        copywriter=copywriter,
        memory=memory,
        library=library,
        channel=channel,
    )


@pytest.fixture
def engine(deps) -> WorkflowEngine:
    return WorkflowEngine(deps)


@pytest.fixture
def gate(config) -> ConfirmationGate:
    return ConfirmationGate(accept_token=config.accept_token)


@pytest.fixture
def dispatcher(deps, gate, config) -> CommandDispatcher:
    return CommandDispatcher(deps, gate, config)


@pytest.fixture
def assistant(deps, engine, dispatcher, gate, memory, channel, transport) -> Assistant:
    return Assistant(
        router=CommandRouter(gate, engine.sessions),
        engine=engine,
        dispatcher=dispatcher,
        freeform=FreeformHandler(deps, engine),
        gate=gate,
        memory=memory,
        channel=channel,
        transport=transport,
    )
