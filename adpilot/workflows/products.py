from typing import Any

from adpilot.catalog.resolution import Match, resolve
from adpilot.errors import CollaboratorError
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, Workflow
from adpilot.workflows.models import ProductBrowse, UserSession, WorkflowKind
from adpilot.workflows.selection import list_catalog, wants_list


class ManageProductsWorkflow(Workflow):
    """Browse the catalog: list, then pick one by number or name for details."""

    kind = WorkflowKind.MANAGE_PRODUCTS

    def new_data(self, **prefill: Any) -> ProductBrowse:
        return ProductBrowse(**prefill)

    def render(self, session: UserSession) -> str:
        browse: ProductBrowse = session.data
        if not browse.shown:
            return "📦 *MANAGE PRODUCTS*\n\nNo products to show."
        return prompts.product_list(browse.shown)

    async def begin(self, user_id: str, session: UserSession) -> StepResult:
        browse: ProductBrowse = session.data
        try:
            browse.shown, reply = await list_catalog(self.deps, user_id)
        except CollaboratorError as e:
            return StepResult(finished=True).say(f"⚠️ Could not fetch products: {e}")
        return StepResult(finished=not browse.shown).say(reply)

    async def handle(self, user_id: str, session: UserSession, text: str) -> StepResult:
        browse: ProductBrowse = session.data
        if wants_list(text):
            return StepResult().say(self.render(session))

        product = await self.deps.memory.resolve_referent(user_id, text, pool=browse.shown)
        if product is None:
            result = resolve(text, browse.shown)
            if isinstance(result, Match):
                product = result.entity
        if product is None:
            return StepResult().say(f'{prompts.product_not_found(text.strip())}\n\nReply with a number from the list.')

        await self.deps.memory.set_last_entity(user_id, product)
        details = prompts.product_details(product)
        return StepResult(finished=True).say(f"{details}\n\nSay \"create campaign for {product.name}\" to advertise it.")
