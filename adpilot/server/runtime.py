import asyncio

import litellm.llms.custom_httpx.async_client_cleanup as litellm_cleanup
import litellm.main as litellm_main

from adpilot.assistant import Assistant
from adpilot.channel import Channel
from adpilot.commands import CommandDispatcher
from adpilot.config import Config, get_config
from adpilot.conversation.confirmation import ConfirmationGate
from adpilot.conversation.library import MediaLibrary, MediaShelf
from adpilot.conversation.memory import ConversationMemory
from adpilot.conversation.models import ConversationContext, PendingConfirmation
from adpilot.database import Database
from adpilot.events import CampaignCreated, MediaGenerated, TurnHandled
from adpilot.integrations.base import AdPlatform, Catalog, Copywriter, MediaGenerator, Transport
from adpilot.integrations.copywriter import LiteLLMCopywriter
from adpilot.integrations.gemini import GeminiMediaGenerator
from adpilot.integrations.meta import MetaAdPlatform
from adpilot.integrations.unconfigured import UnconfiguredAdPlatform, UnconfiguredCatalog, UnconfiguredMediaGenerator
from adpilot.integrations.whatsapp import WhatsAppTransport
from adpilot.integrations.woo import WooCommerceCatalog
from adpilot.intents import FreeformHandler
from adpilot.logging import get_logger
from adpilot.messages import format_money
from adpilot.router import CommandRouter
from adpilot.store import SCHEMA, InMemoryStore, SessionStore, SqliteStore
from adpilot.workflows.base import WorkflowDeps
from adpilot.workflows.engine import WorkflowEngine
from adpilot.workflows.models import UserSession

_logger = get_logger(__name__)


def build_catalog(config: Config) -> Catalog:
    if not config.catalog_configured:
        _logger.warning("WooCommerce credentials missing, catalog calls will fail")
        return UnconfiguredCatalog()
    return WooCommerceCatalog(config.wc_api_url, config.wc_api_key, config.wc_api_secret)


def build_media(config: Config) -> MediaGenerator:
    if not config.gemini_api_key:
        _logger.warning("GEMINI_API_KEY missing, media generation disabled")
        return UnconfiguredMediaGenerator()
    return GeminiMediaGenerator(config.gemini_api_key, config.image_model, config.video_model)


def build_ads(config: Config) -> AdPlatform:
    if not config.meta_access_token:
        _logger.warning("META_ACCESS_TOKEN missing, ad platform calls will fail")
        return UnconfiguredAdPlatform()
    return MetaAdPlatform(
        config.meta_access_token,
        ad_account_id=config.meta_ad_account_id,
        page_id=config.meta_page_id,
        shop_url=config.shop_url,
    )


class Runtime:
    """Wires collaborators, stores and the conversation core together.

    Any collaborator passed in explicitly wins over the one built from config.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        catalog: Catalog | None = None,
        media: MediaGenerator | None = None,
        ads: AdPlatform | None = None,
        copywriter: Copywriter | None = None,
        transport: Transport | None = None,
    ):
        self.config = config or get_config()
        self.channel = Channel()

        self.catalog = catalog or build_catalog(self.config)
        self.media = media or build_media(self.config)
        self.ads = ads or build_ads(self.config)
        self.copywriter = copywriter or LiteLLMCopywriter(self.config.chat_model, self.config.openai_api_key)
        self.transport = transport

        self.db: Database | None = None
        self.assistant: Assistant | None = None
        self.engine: WorkflowEngine | None = None
        self.gate: ConfirmationGate | None = None
        self.memory: ConversationMemory | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def _stores(
        self,
    ) -> tuple[
        SessionStore[UserSession],
        SessionStore[ConversationContext],
        SessionStore[PendingConfirmation],
        SessionStore[MediaShelf],
    ]:
        if self.config.store == "memory":
            return InMemoryStore(), InMemoryStore(), InMemoryStore(), InMemoryStore()

        self.db = Database(self.config.sessions_db_path)
        await self.db.connect()
        await self.db.ensure_schema(SCHEMA)
        sessions = SqliteStore(self.db.conn, "workflow", UserSession)
        contexts = SqliteStore(self.db.conn, "context", ConversationContext)
        confirmations = SqliteStore(self.db.conn, "confirmation", PendingConfirmation)
        shelves = SqliteStore(self.db.conn, "media", MediaShelf)
        return sessions, contexts, confirmations, shelves

    async def connect(self) -> None:
        if self._connected:
            return

        if self.transport is None and self.config.whatsapp_configured:
            self.transport = WhatsAppTransport.from_config(self.config)

        sessions, contexts, confirmations, shelves = await self._stores()
        self.memory = ConversationMemory(
            contexts,
            history_limit=self.config.history_limit,
            idle_seconds=self.config.context_idle_seconds,
        )
        self.gate = ConfirmationGate(confirmations, accept_token=self.config.accept_token)

        deps = WorkflowDeps(
            catalog=self.catalog,
            media=self.media,
            ads=self.ads,
            copywriter=self.copywriter,
            memory=self.memory,
            library=MediaLibrary(shelves),
            channel=self.channel,
        )
        self.engine = WorkflowEngine(deps, sessions)
        self.assistant = Assistant(
            router=CommandRouter(self.gate, sessions),
            engine=self.engine,
            dispatcher=CommandDispatcher(deps, self.gate, self.config),
            freeform=FreeformHandler(deps, self.engine),
            gate=self.gate,
            memory=self.memory,
            channel=self.channel,
            transport=self.transport,
        )

        self.channel.subscribe(TurnHandled, self._on_turn_handled)
        self.channel.subscribe(CampaignCreated, self._on_campaign_created)
        self.channel.subscribe(MediaGenerated, self._on_media_generated)
        self._connected = True

    async def handle_message(self, user_id: str, text: str) -> None:
        """Background entry point for transports: failures are logged, never raised."""
        try:
            await self.assistant.handle(user_id, text)
        except Exception:
            _logger.exception("Failed to handle message from %s", user_id)

    async def _on_turn_handled(self, event: TurnHandled) -> None:
        _logger.debug("Turn handled: %s, %d replies in %dms", event.decision, event.replies, event.duration_ms)

    async def _on_campaign_created(self, event: CampaignCreated) -> None:
        _logger.info(
            "Campaign %s (%s) created at %s/day",
            event.campaign_id,
            event.name,
            format_money(event.daily_budget),
        )

    async def _on_media_generated(self, event: MediaGenerated) -> None:
        _logger.info("Generated %s for product %s", event.kind, event.product_id or "-")

    async def close(self) -> None:
        await self.channel.drain()
        if self.db:
            await self.db.close()
            self.db = None
        self._connected = False

        await litellm_main.base_llm_aiohttp_handler.close()
        await litellm_cleanup.close_litellm_async_clients()


_runtime: Runtime | None = None
_runtime_lock = asyncio.Lock()


async def get_runtime_async(config: Config | None = None) -> Runtime:
    global _runtime
    async with _runtime_lock:
        if _runtime is None:
            _runtime = Runtime(config)
            await _runtime.connect()
    return _runtime


def get_runtime() -> Runtime:
    if _runtime is None:
        raise RuntimeError("Runtime not initialized. Call get_runtime_async() first.")
    if not _runtime.connected:
        raise RuntimeError("Runtime not connected. Call await runtime.connect() first.")
    return _runtime


def set_runtime(runtime: Runtime | None) -> None:
    global _runtime
    _runtime = runtime


async def reset_runtime() -> None:
    global _runtime
    if _runtime is not None:
        await _runtime.close()
        _runtime = None
