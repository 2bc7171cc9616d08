import pytest

from adpilot.events import CampaignCreated, MediaGenerated
from adpilot.integrations.models import MediaKind
from adpilot.messages import ImageMessage
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult
from adpilot.workflows.campaign import media_kind_for
from adpilot.workflows.models import WorkflowKind

USER = "u1"


def _text(result: StepResult) -> str:
    return "\n".join(result.texts)


async def _to_review(engine, product: str = "shampoo") -> StepResult:
    await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
    await engine.advance(USER, product)
    await engine.advance(USER, "4")
    await engine.advance(USER, "2")
    return await engine.advance(USER, "$40 ongoing")


class TestMediaKindFor:
    @pytest.mark.parametrize(
        ("text", "kind"),
        [
            ("1", MediaKind.IMAGE_PACK),
            ("image pack please", MediaKind.IMAGE_PACK),
            ("2", MediaKind.IMAGE),
            ("3", MediaKind.VIDEO),
            ("a short video", MediaKind.VIDEO),
            ("4", None),
            ("skip", None),
        ],
    )
    def test_choices(self, text, kind):
        assert media_kind_for(text) == kind


class TestCreateCampaignFlow:
    @pytest.mark.asyncio
    async def test_full_scenario(self, engine, ads):
        result = await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        assert "Step 1/5" in _text(result)

        result = await engine.advance(USER, "shampoo")
        assert "✅ *Product: Shampoo*" in _text(result)
        assert "Step 2/5" in _text(result)

        result = await engine.advance(USER, "4")
        assert "Step 3/5" in _text(result)

        result = await engine.advance(USER, "2")
        assert "✅ *Objective: Traffic (Website visits)*" in _text(result)
        assert "Step 4/5" in _text(result)

        result = await engine.advance(USER, "$40 ongoing")
        review = _text(result)
        assert "Step 5/5" in review
        assert "• Budget: $40/day" in review
        assert "• Objective: Traffic (Website visits)" in review
        assert "• Duration: ongoing" in review
        assert "• Media: None" in review
        assert "• Headline: Meet Shampoo" in review

        result = await engine.advance(USER, "1")
        assert result.finished
        assert "Campaign Created Successfully!" in _text(result)
        assert "cmp_1" in _text(result)

        spec = ads.created[0]
        assert spec.daily_budget == 40
        assert spec.objective == "LINK_CLICKS"
        assert spec.name == "Shampoo - Traffic"
        assert spec.image is None
        assert spec.audience.age_min == 18
        assert await engine.session(USER) is None

    @pytest.mark.asyncio
    async def test_created_event_is_published(self, engine, channel):
        events = []

        async def on_created(event: CampaignCreated) -> None:
            events.append(event)

        channel.subscribe(CampaignCreated, on_created)
        await _to_review(engine)
        await engine.advance(USER, "yes")
        await channel.drain()

        assert events == [CampaignCreated(user_id=USER, campaign_id="cmp_1", name="Shampoo - Traffic", daily_budget=40)]

    @pytest.mark.asyncio
    async def test_dated_schedule(self, engine, ads):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        await engine.advance(USER, "skip")
        await engine.advance(USER, "sales")
        result = await engine.advance(USER, "$25 01/03/2025 to 31/03/2025")
        assert "• Duration: 01/03/2025 to 31/03/2025" in _text(result)

        await engine.advance(USER, "1")
        spec = ads.created[0]
        assert spec.start_time == "2025-03-01"
        assert spec.end_time == "2025-03-31"
        assert spec.objective == "CONVERSIONS"


class TestNavigation:
    @pytest.mark.asyncio
    async def test_back_restores_previous_prompt_and_keeps_data(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        await engine.advance(USER, "4")

        result = await engine.back(USER)
        assert prompts.GOING_BACK in _text(result)
        assert "Step 2/5: Generate media for Shampoo?" in _text(result)

        session = await engine.session(USER)
        assert session.step == 2
        assert session.data.product.name == "Shampoo"

        result = await engine.advance(USER, "4")
        assert "Step 3/5" in _text(result)

    @pytest.mark.asyncio
    async def test_back_at_first_step(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        result = await engine.back(USER)
        assert _text(result) == prompts.CANT_GO_BACK
        assert (await engine.session(USER)).step == 1

    @pytest.mark.asyncio
    async def test_back_without_session(self, engine):
        result = await engine.back(USER)
        assert _text(result) == prompts.CANT_GO_BACK

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        first = await engine.cancel(USER)
        second = await engine.cancel(USER)
        assert _text(first) == _text(second) == prompts.CANCELLED
        assert await engine.session(USER) is None

    @pytest.mark.asyncio
    async def test_menu_replaces_session(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        result = await engine.menu(USER)
        assert _text(result) == prompts.MAIN_MENU
        assert (await engine.session(USER)).workflow is WorkflowKind.MAIN_MENU


class TestProductStep:
    @pytest.mark.asyncio
    async def test_ambiguous_then_ordinal(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        result = await engine.advance(USER, "argan repair")
        assert "Several products match" in _text(result)
        assert (await engine.session(USER)).step == 1

        result = await engine.advance(USER, "2")
        assert "✅ *Product: Repair Mask Deep*" in _text(result)
        assert (await engine.session(USER)).step == 2

    @pytest.mark.asyncio
    async def test_list_then_ordinal(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        result = await engine.advance(USER, "list products")
        assert "📦 *Available Products:*" in _text(result)
        assert "3. Moringa Conditioner - $18" in _text(result)

        result = await engine.advance(USER, "3")
        assert "✅ *Product: Moringa Conditioner*" in _text(result)

    @pytest.mark.asyncio
    async def test_not_found_stays(self, engine):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        result = await engine.advance(USER, "xyz")
        assert "Product not found" in _text(result)
        assert (await engine.session(USER)).step == 1

    @pytest.mark.asyncio
    async def test_catalog_failure_stays(self, engine, catalog):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        catalog.fail = True
        result = await engine.advance(USER, "shampoo")
        assert "catalog offline" in _text(result)
        assert (await engine.session(USER)).step == 1

    @pytest.mark.asyncio
    async def test_prefilled_product_and_budget(self, engine, ads):
        result = await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN, product_query="moringa shampoo", budget=60)
        assert 'Detected: "moringa shampoo"' in _text(result)

        result = await engine.advance(USER, "yes")
        assert "✅ *Product: Moringa Shampoo*" in _text(result)

        await engine.advance(USER, "4")
        result = await engine.advance(USER, "1")
        assert "$60 (detected)" in _text(result)

        result = await engine.advance(USER, "use defaults")
        assert "• Budget: $60/day" in _text(result)

        await engine.advance(USER, "yes")
        assert ads.created[0].daily_budget == 60
        assert ads.created[0].name == "Moringa Shampoo - Sales"


class TestMediaStep:
    @pytest.mark.asyncio
    async def test_failure_stays_on_step(self, engine, media):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        media.fail = True

        result = await engine.advance(USER, "2")
        assert "Media generation failed: quota exceeded" in _text(result)
        assert (await engine.session(USER)).step == 2

        result = await engine.advance(USER, "skip")
        assert "Step 3/5" in _text(result)

    @pytest.mark.asyncio
    async def test_image_pack(self, engine, media, channel):
        events = []

        async def on_media(event: MediaGenerated) -> None:
            events.append(event)

        channel.subscribe(MediaGenerated, on_media)
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")

        result = await engine.advance(USER, "1")
        images = [m for m in result.messages if isinstance(m, ImageMessage)]
        assert [i.data for i in images] == [b"square", b"portrait", b"story"]
        assert "Step 3/5" in _text(result)
        assert media.calls[0][0] is MediaKind.IMAGE_PACK

        await channel.drain()
        assert events == [MediaGenerated(user_id=USER, product_id="1", kind="image_pack")]

    @pytest.mark.asyncio
    async def test_image_is_attached_to_campaign(self, engine, ads):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        await engine.advance(USER, "2")
        await engine.advance(USER, "1")
        result = await engine.advance(USER, "30")
        assert "• Media: 1 image ✅" in _text(result)

        await engine.advance(USER, "1")
        assert ads.created[0].image == b"image"

    @pytest.mark.asyncio
    async def test_video_is_not_attached(self, engine, ads):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        await engine.advance(USER, "3")
        await engine.advance(USER, "1")
        await engine.advance(USER, "30")
        await engine.advance(USER, "1")
        assert ads.created[0].image is None


class TestReviewStep:
    @pytest.mark.asyncio
    async def test_creation_failure_keeps_step(self, engine, ads):
        await _to_review(engine)
        ads.fail = True
        result = await engine.advance(USER, "1")
        assert "Failed to create campaign: ad account disabled" in _text(result)
        assert (await engine.session(USER)).step == 5

    @pytest.mark.asyncio
    async def test_copywriter_failure_uses_defaults(self, engine, copywriter):
        copywriter.fail = True
        result = await _to_review(engine)
        review = _text(result)
        assert "• Audience: AI-generated (25-45, hair care)" in review
        assert "• Headline: Shampoo" in review

    @pytest.mark.asyncio
    async def test_edit_target_jumps_to_step(self, engine):
        await _to_review(engine)
        result = await engine.advance(USER, "budget")
        assert "Step 4/5" in _text(result)
        assert "$40 (detected)" in _text(result)

        result = await engine.advance(USER, "$55")
        assert "• Budget: $55/day" in _text(result)

    @pytest.mark.asyncio
    async def test_edit_lists_options(self, engine):
        await _to_review(engine)
        result = await engine.advance(USER, "2")
        assert _text(result) == prompts.EDIT_OPTIONS
        assert (await engine.session(USER)).step == 5

    @pytest.mark.asyncio
    async def test_cancel_option(self, engine, ads):
        await _to_review(engine)
        result = await engine.advance(USER, "3")
        assert result.finished
        assert ads.created == []
        assert await engine.session(USER) is None

    @pytest.mark.asyncio
    async def test_other_reply_repeats_review(self, engine):
        await _to_review(engine)
        result = await engine.advance(USER, "hmm")
        assert "Step 5/5" in _text(result)

    @pytest.mark.asyncio
    async def test_product_change_drops_media_made_for_old_product(self, engine, ads):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        await engine.advance(USER, "2")
        await engine.advance(USER, "1")
        await engine.advance(USER, "30")

        await engine.advance(USER, "product")
        result = await engine.advance(USER, "moringa conditioner")
        assert "Step 2/5: Generate media for Moringa Conditioner?" in _text(result)
        draft = (await engine.session(USER)).data
        assert draft.media is None
        assert draft.media_product_id is None
        assert draft.audience is None

        await engine.advance(USER, "4")
        await engine.advance(USER, "1")
        await engine.advance(USER, "30")
        await engine.advance(USER, "1")
        assert ads.created[0].product.name == "Moringa Conditioner"
        assert ads.created[0].image is None

    @pytest.mark.asyncio
    async def test_same_product_keeps_media(self, engine, ads):
        await engine.start(USER, WorkflowKind.CREATE_CAMPAIGN)
        await engine.advance(USER, "shampoo")
        await engine.advance(USER, "2")
        await engine.advance(USER, "1")
        await engine.advance(USER, "30")

        await engine.advance(USER, "product")
        result = await engine.advance(USER, "shampoo")
        assert "Using your generated media (1 image)" in _text(result)
        assert (await engine.session(USER)).step == 3
