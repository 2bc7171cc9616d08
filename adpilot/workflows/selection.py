from dataclasses import dataclass

from adpilot.catalog.models import Product
from adpilot.catalog.resolution import Ambiguous, Match, NotFound, resolve
from adpilot.constants import CATALOG_FETCH_LIMIT, LIST_DISPLAY_LIMIT
from adpilot.conversation.memory import extract_name
from adpilot.errors import CollaboratorError
from adpilot.logging import get_logger
from adpilot.workflows import prompts
from adpilot.workflows.base import WorkflowDeps

_logger = get_logger(__name__)

AFFIRMATIVE = {"yes", "y", "ok", "okay", "yep", "sure", "correct"}
LIST_REQUESTS = {"list products", "list", "products", "show products"}


@dataclass(frozen=True)
class Selection:
    product: Product | None = None
    reply: str | None = None


def wants_list(text: str) -> bool:
    return " ".join(text.lower().split()) in LIST_REQUESTS


async def list_catalog(deps: WorkflowDeps, user_id: str) -> tuple[list[Product], str]:
    """Fetch, remember and render the numbered product list. Raises CollaboratorError."""
    products = (await deps.catalog.list_products(CATALOG_FETCH_LIMIT))[:LIST_DISPLAY_LIMIT]
    if not products:
        return [], "📦 No products found in the catalog."
    await deps.memory.set_shown_list(user_id, products)
    return products, prompts.product_list(products)


async def select_product(
    deps: WorkflowDeps,
    user_id: str,
    text: str,
    detected: str | None = None,
) -> Selection:
    """Turn a reply into one product: list request, ordinal, pronoun or name."""
    lower = " ".join(text.lower().split())
    try:
        if wants_list(text):
            _, reply = await list_catalog(deps, user_id)
            return Selection(reply=reply)

        if (referent := await deps.memory.resolve_referent(user_id, text)) is not None:
            return Selection(product=referent)

        query = detected if detected and lower in AFFIRMATIVE else (extract_name(text) or text.strip())
        if not query:
            return Selection(reply=prompts.product_not_found(text))

        pool = await deps.catalog.search(query) or await deps.catalog.list_products(CATALOG_FETCH_LIMIT)
    except CollaboratorError as e:
        _logger.warning("Product lookup failed for %s: %s", user_id, e)
        return Selection(reply=f'⚠️ Could not look up products: {e}\n\nSay "list products" to see all products.')

    match resolve(query, pool):
        case Match(entity=entity):
            await deps.memory.set_last_entity(user_id, entity)
            await deps.memory.clear_pending(user_id)
            return Selection(product=entity)
        case Ambiguous(candidates=candidates):
            products = [c.entity for c in candidates]
            await deps.memory.set_shown_list(user_id, products)
            await deps.memory.set_pending_candidates(user_id, products)
            return Selection(reply=prompts.disambiguation(query, products))
        case NotFound():
            return Selection(reply=prompts.product_not_found(query))
