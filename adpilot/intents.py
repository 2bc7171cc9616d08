import re
from dataclasses import dataclass
from enum import StrEnum

from adpilot.constants import CHAT_HISTORY_WINDOW
from adpilot.conversation.memory import parse_ordinal
from adpilot.errors import CollaboratorError
from adpilot.logging import get_logger
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, WorkflowDeps
from adpilot.workflows.content import FollowUp, MediaStudio, parse_content_command, parse_follow_up
from adpilot.workflows.engine import WorkflowEngine
from adpilot.workflows.models import WorkflowKind
from adpilot.workflows.parsing import AMOUNT_PATTERN, to_amount
from adpilot.workflows.selection import list_catalog

_logger = get_logger(__name__)

_CAMPAIGN_PRODUCT_RE = re.compile(
    rf"\bfor\s+(.+?)(?:\s+\$?{AMOUNT_PATTERN}(?:\s*/\s*day)?|\s*\${AMOUNT_PATTERN}(?:\s*/\s*day)?)?\s*$",
    re.IGNORECASE,
)
_BUDGET_RE = re.compile(rf"\$?({AMOUNT_PATTERN})")


class ShortcutKind(StrEnum):
    CREATE_CAMPAIGN = "create_campaign"
    GENERATE_MEDIA = "generate_media"
    LIST_PRODUCTS = "list_products"


@dataclass(frozen=True)
class Shortcut:
    kind: ShortcutKind
    product: str | None = None
    budget: float | None = None


def detect_shortcut(text: str) -> Shortcut | None:
    lower = text.lower()
    if "create campaign" in lower or "new campaign" in lower:
        product = m.group(1).strip() if (m := _CAMPAIGN_PRODUCT_RE.search(text)) else None
        budget_text = text[m.end(1):] if m else text
        budget = to_amount(b.group(1)) if (b := _BUDGET_RE.search(budget_text)) else None
        return Shortcut(ShortcutKind.CREATE_CAMPAIGN, product=product or None, budget=budget or None)
    if any(k in lower for k in ("generate image", "create image", "generate media", "generate video")):
        return Shortcut(ShortcutKind.GENERATE_MEDIA)
    if "list products" in lower or "show products" in lower:
        return Shortcut(ShortcutKind.LIST_PRODUCTS)
    return None


class FreeformHandler:
    """Messages outside any workflow.

    Replies to the last generated asset come first, then media requests,
    shortcuts and list picks. Anything else goes to open conversation.
    """

    def __init__(self, deps: WorkflowDeps, engine: WorkflowEngine):
        self.deps = deps
        self.engine = engine
        self.studio = MediaStudio(deps)

    async def handle(self, user_id: str, text: str) -> StepResult:
        if (action := parse_follow_up(text)) is not None:
            return await self._follow_up(user_id, action)

        if (command := parse_content_command(text)) is not None:
            return await self.studio.create(user_id, command)

        if (shortcut := detect_shortcut(text)) is not None:
            return await self._shortcut(user_id, shortcut)

        if parse_ordinal(text) is not None:
            product = await self.deps.memory.resolve_referent(user_id, text)
            if product is not None:
                return StepResult().say(prompts.product_details(product))

        history = await self.deps.memory.recent_history(user_id, CHAT_HISTORY_WINDOW)
        try:
            reply = await self.deps.copywriter.reply(history, text)
        except CollaboratorError as e:
            _logger.warning("Free-form reply failed for %s: %s", user_id, e)
            return StepResult().say(f"⚠️ I couldn't answer that right now: {e}\n\nSay 'menu' for options.")
        return StepResult().say(reply or prompts.MENU_RETRY)

    async def _follow_up(self, user_id: str, action: FollowUp) -> StepResult:
        latest = await self.deps.library.latest(user_id)
        if latest is None:
            return StepResult().say(prompts.NO_RECENT_MEDIA)
        if action is not FollowUp.USE:
            return await self.studio.follow_up(user_id, action, latest)

        prefill = {"media": latest.asset}
        if latest.product is not None:
            prefill |= {"product_query": latest.product.name, "media_product_id": latest.product.id}
        result = StepResult().say(prompts.media_reused(latest.asset))
        return result.extend(await self.engine.start(user_id, WorkflowKind.CREATE_CAMPAIGN, **prefill))

    async def _shortcut(self, user_id: str, shortcut: Shortcut) -> StepResult:
        match shortcut.kind:
            case ShortcutKind.CREATE_CAMPAIGN:
                prefill = {}
                if shortcut.product:
                    referent = await self.deps.memory.resolve_referent(user_id, shortcut.product)
                    prefill["product_query"] = referent.name if referent else shortcut.product
                if shortcut.budget:
                    prefill["budget"] = shortcut.budget
                return await self.engine.start(user_id, WorkflowKind.CREATE_CAMPAIGN, **prefill)
            case ShortcutKind.GENERATE_MEDIA:
                return await self.engine.start(user_id, WorkflowKind.GENERATE_MEDIA)
            case ShortcutKind.LIST_PRODUCTS:
                try:
                    _, reply = await list_catalog(self.deps, user_id)
                except CollaboratorError as e:
                    reply = f"⚠️ Could not fetch products: {e}"
                return StepResult().say(reply)
