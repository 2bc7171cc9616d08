import asyncio
from typing import Any

from adpilot.catalog.models import Product
from adpilot.constants import DEFAULT_DAILY_BUDGET
from adpilot.errors import CollaboratorError
from adpilot.events import CampaignCreated
from adpilot.integrations.models import AdCopy, Audience, CampaignSpec, MediaKind, MediaRequest
from adpilot.logging import get_logger
from adpilot.messages import TextMessage, format_money
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, Workflow
from adpilot.workflows.content import asset_messages, generate_media
from adpilot.workflows.models import CampaignDraft, UserSession, WorkflowKind
from adpilot.workflows.parsing import DEFAULT_OBJECTIVE, leading_number, parse_budget_schedule, parse_objective
from adpilot.workflows.selection import select_product

_logger = get_logger(__name__)

PRODUCT, MEDIA, OBJECTIVE, BUDGET, REVIEW = 1, 2, 3, 4, 5

EDIT_TARGETS = {"product": PRODUCT, "media": MEDIA, "objective": OBJECTIVE, "budget": BUDGET}


def media_kind_for(text: str) -> MediaKind | None:
    """Step 2 choice; None means skip."""
    number = leading_number(text)
    lower = text.lower().strip()
    if number == 4 or lower in ("skip", "no"):
        return None
    if number == 1 or "pack" in lower:
        return MediaKind.IMAGE_PACK
    if number == 3 or "video" in lower:
        return MediaKind.VIDEO
    return MediaKind.IMAGE


class CreateCampaignWorkflow(Workflow):
    kind = WorkflowKind.CREATE_CAMPAIGN

    def new_data(self, **prefill: Any) -> CampaignDraft:
        return CampaignDraft(**prefill)

    def render(self, session: UserSession) -> str:
        draft: CampaignDraft = session.data
        match session.step:
            case 1:
                return prompts.campaign_product_step(draft)
            case 2:
                return prompts.campaign_media_step(draft)
            case 3:
                return prompts.objective_step()
            case 4:
                return prompts.budget_step(draft)
            case _:
                return prompts.review_step(draft, DEFAULT_DAILY_BUDGET)

    async def handle(self, user_id: str, session: UserSession, text: str) -> StepResult:
        match session.step:
            case 1:
                return await self._select_product(user_id, session, text)
            case 2:
                return await self._generate_media(user_id, session, text)
            case 3:
                return self._select_objective(session, text)
            case 4:
                return await self._budget_schedule(session, text)
            case _:
                return await self._review(user_id, session, text)

    def _goto(self, session: UserSession, step: int, header: str | None = None) -> StepResult:
        session.step = step
        prompt = self.render(session)
        return StepResult().say(f"{header}\n\n{prompt}" if header else prompt)

    async def _select_product(self, user_id: str, session: UserSession, text: str) -> StepResult:
        draft: CampaignDraft = session.data
        selection = await select_product(self.deps, user_id, text, detected=draft.product_query)
        if selection.product is None:
            return StepResult().say(selection.reply)
        product = selection.product
        if draft.product is not None and draft.product.id != product.id:
            draft.audience = draft.ad_copy = None
        if draft.media is not None and draft.media_product_id not in (None, product.id):
            _logger.info("Dropping media made for product %s", draft.media_product_id)
            draft.media = draft.media_product_id = None
        draft.product = product
        draft.product_query = None

        header = prompts.product_selected(product)
        if draft.media is not None:
            return self._goto(session, OBJECTIVE, f"{header}\n\n{prompts.media_kept(draft.media)}")
        return self._goto(session, MEDIA, header)

    async def _generate_media(self, user_id: str, session: UserSession, text: str) -> StepResult:
        draft: CampaignDraft = session.data
        kind = media_kind_for(text)
        if kind is None:
            return self._goto(session, OBJECTIVE)
        if draft.product is None:
            return self._goto(session, PRODUCT, "⚠️ No product selected yet.")

        try:
            asset = await generate_media(self.deps, user_id, kind, MediaRequest(product=draft.product))
        except CollaboratorError as e:
            _logger.warning("Media generation failed for %s: %s", user_id, e)
            return StepResult().say(prompts.media_failed(e))

        draft.media = asset
        draft.media_product_id = draft.product.id
        result = StepResult(messages=asset_messages(asset, "✅ Media generated!"))
        return result.extend(self._goto(session, OBJECTIVE))

    def _select_objective(self, session: UserSession, text: str) -> StepResult:
        draft: CampaignDraft = session.data
        option = parse_objective(text)
        draft.objective = option.api_value
        draft.objective_label = option.label
        return self._goto(session, BUDGET, f"✅ *Objective: {option.label}*")

    async def _budget_schedule(self, session: UserSession, text: str) -> StepResult:
        draft: CampaignDraft = session.data
        schedule = parse_budget_schedule(text, default_budget=draft.budget)
        draft.budget = schedule.budget
        draft.duration = schedule.duration
        draft.start_date = schedule.start_date
        draft.end_date = schedule.end_date

        if draft.product is not None:
            draft.audience, draft.ad_copy = await asyncio.gather(
                self._audience(draft.product),
                self._ad_copy(draft.product),
            )
        header = f"✅ *Budget: {format_money(schedule.budget)}/day | Duration: {schedule.duration}*"
        return self._goto(session, REVIEW, header)

    async def _audience(self, product: Product) -> Audience:
        try:
            return await self.deps.copywriter.audience(product)
        except CollaboratorError as e:
            _logger.warning("Audience generation failed, using defaults: %s", e)
            return Audience()

    async def _ad_copy(self, product: Product) -> AdCopy:
        try:
            return await self.deps.copywriter.ad_copy(product)
        except CollaboratorError as e:
            _logger.warning("Ad copy generation failed, using defaults: %s", e)
            return AdCopy.default_for(product)

    async def _review(self, user_id: str, session: UserSession, text: str) -> StepResult:
        lower = " ".join(text.lower().split())
        if lower in EDIT_TARGETS:
            return self._goto(session, EDIT_TARGETS[lower])

        number = leading_number(text)
        if number == 1 or lower in ("yes", "create"):
            return await self._create(user_id, session)
        if number == 2 or lower == "edit":
            return StepResult().say(prompts.EDIT_OPTIONS)
        if number == 3 or lower == "cancel":
            return StepResult(finished=True).say("❌ Campaign creation cancelled. Say 'menu' to start over.")
        return StepResult().say(self.render(session))

    async def _create(self, user_id: str, session: UserSession) -> StepResult:
        draft: CampaignDraft = session.data
        if draft.product is None:
            return self._goto(session, PRODUCT, "⚠️ Pick a product before creating the campaign.")

        objective_name = (draft.objective_label or DEFAULT_OBJECTIVE.label).split(" (")[0]
        budget = draft.budget or DEFAULT_DAILY_BUDGET
        image = draft.media.data if draft.media and not draft.media.is_video else None
        spec = CampaignSpec(
            name=f"{draft.product.name} - {objective_name}",
            objective=draft.objective or DEFAULT_OBJECTIVE.api_value,
            daily_budget=budget,
            product=draft.product,
            audience=draft.audience or Audience(),
            ad_copy=draft.ad_copy,
            image=image,
            start_time=draft.start_date,
            end_time=draft.end_date,
        )
        try:
            result = await self.deps.ads.create_campaign(spec)
        except CollaboratorError as e:
            _logger.warning("Campaign creation failed for %s: %s", user_id, e)
            return StepResult().say(f'❌ Failed to create campaign: {e}\n\nTry again or say "menu" to start over.')

        self.deps.channel.publish(
            CampaignCreated(user_id=user_id, campaign_id=result.campaign_id, name=spec.name, daily_budget=budget)
        )
        return StepResult(
            messages=[
                TextMessage(
                    "✅ *Campaign Created Successfully!*\n\n"
                    f"📊 Campaign ID: {result.campaign_id}\n"
                    f'📝 Name: "{spec.name}"\n'
                    f"💰 Budget: {format_money(budget)}/day\n"
                    "⏸️ Status: PAUSED (ready to review)\n\n"
                    f"Activate it in Meta Ads Manager or with /resume {result.campaign_id}"
                )
            ],
            finished=True,
        )
