from typing import Any

from adpilot.errors import CollaboratorError
from adpilot.integrations.models import MediaKind, MediaRequest
from adpilot.logging import get_logger
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, Workflow
from adpilot.workflows.content import asset_messages, generate_media
from adpilot.workflows.models import MediaDraft, UserSession, WorkflowKind
from adpilot.workflows.parsing import leading_number
from adpilot.workflows.selection import select_product

_logger = get_logger(__name__)


def parse_media_kind(text: str) -> MediaKind:
    number = leading_number(text)
    lower = text.lower()
    if number == 1 or "pack" in lower:
        return MediaKind.IMAGE_PACK
    if number == 3 or "video" in lower:
        return MediaKind.VIDEO
    return MediaKind.IMAGE


class GenerateMediaWorkflow(Workflow):
    kind = WorkflowKind.GENERATE_MEDIA

    def new_data(self, **prefill: Any) -> MediaDraft:
        return MediaDraft(**prefill)

    def render(self, session: UserSession) -> str:
        draft: MediaDraft = session.data
        if session.step <= 1:
            return prompts.media_product_step()
        return prompts.media_kind_step(draft.product)

    async def handle(self, user_id: str, session: UserSession, text: str) -> StepResult:
        draft: MediaDraft = session.data
        if session.step <= 1:
            selection = await select_product(self.deps, user_id, text)
            if selection.product is None:
                return StepResult().say(selection.reply)
            draft.product = selection.product
            session.step = 2
            return StepResult().say(f"{prompts.product_selected(selection.product)}\n\n{self.render(session)}")

        kind = parse_media_kind(text)
        draft.media_kind = kind
        try:
            asset = await generate_media(self.deps, user_id, kind, MediaRequest(product=draft.product))
        except CollaboratorError as e:
            _logger.warning("Media generation failed for %s: %s", user_id, e)
            return StepResult().say(f"⚠️ Media generation failed: {e}\n\nReply 1-3 to try again, or say 'menu'.")

        caption = f"✅ {draft.product.name}"
        result = StepResult(messages=asset_messages(asset, caption), finished=True)
        return result.say(prompts.media_ready(draft.product))
