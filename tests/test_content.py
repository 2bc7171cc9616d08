import pytest

from adpilot.conversation.library import MediaLibrary, RecentMedia
from adpilot.integrations.models import GeneratedAsset, MediaKind, MediaRequest
from adpilot.intents import FreeformHandler
from adpilot.messages import ImageMessage, VideoMessage
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult
from adpilot.workflows.content import (
    ContentCommand,
    FollowUp,
    MediaStudio,
    clamp_duration,
    detect_aspect_ratio,
    normalize_aspect_ratio,
    parse_content_command,
    parse_follow_up,
)
from adpilot.workflows.models import WorkflowKind

USER = "u1"


def _text(result: StepResult) -> str:
    return "\n".join(result.texts)


@pytest.fixture
def studio(deps) -> MediaStudio:
    return MediaStudio(deps)


@pytest.fixture
def freeform(deps, engine) -> FreeformHandler:
    return FreeformHandler(deps, engine)


class TestParseContentCommand:
    def test_structured_image(self):
        command = parse_content_command('image: beach flat lay | find="moringa shampoo" | ar=16:9')
        assert command == ContentCommand(
            kind=MediaKind.IMAGE,
            prompt="beach flat lay",
            product_query="moringa shampoo",
            aspect_ratio="16:9",
        )

    def test_structured_video(self):
        command = parse_content_command("Video: slow pour close-up | product=12 | ar=9:16 | dur=30")
        assert command == ContentCommand(
            kind=MediaKind.VIDEO,
            prompt="slow pour close-up",
            product_id="12",
            aspect_ratio="9:16",
            duration_seconds=8,
        )

    def test_unsupported_ratio_falls_back_to_default(self):
        assert parse_content_command("video: waves | ar=1:1").aspect_ratio is None
        assert parse_content_command("image: waves | ar=4x3").aspect_ratio == "4:3"

    def test_edit(self):
        command = parse_content_command("edit: brighter background | url=https://x/img.png")
        assert command.edit
        assert command.prompt == "brighter background"

    @pytest.mark.parametrize(
        ("text", "kind", "prompt", "aspect_ratio"),
        [
            ("generate an image of argan oil on a beach", MediaKind.IMAGE, "argan oil on beach", None),
            ("Make a square photo of shampoo bottles", MediaKind.IMAGE, "square shampoo bottles", "1:1"),
            ("I want a vertical picture for our story", MediaKind.IMAGE, "vertical our story", "9:16"),
            ("create a video of hair flowing in wind", MediaKind.VIDEO, "hair flowing in wind", None),
        ],
    )
    def test_natural_language(self, text, kind, prompt, aspect_ratio):
        command = parse_content_command(text)
        assert command.kind is kind
        assert command.prompt == prompt
        assert command.aspect_ratio == aspect_ratio

    def test_natural_video_duration(self):
        command = parse_content_command("make a 6 second portrait video of a serum drop")
        assert command.duration_seconds == 6
        assert command.aspect_ratio == "9:16"

    @pytest.mark.parametrize(
        "text",
        ["generate image", "generate video", "create campaign with an image of shampoo", "what sells best?"],
    )
    def test_not_content(self, text):
        assert parse_content_command(text) is None

    def test_helpers(self):
        assert clamp_duration(2) == 5
        assert clamp_duration(60) == 8
        assert normalize_aspect_ratio(" 16/9 ", MediaKind.IMAGE) == "16:9"
        assert normalize_aspect_ratio("3:4", MediaKind.VIDEO) is None
        assert detect_aspect_ratio("a wide landscape shot", MediaKind.VIDEO) == "16:9"
        assert detect_aspect_ratio("no hints here", MediaKind.IMAGE) is None


class TestParseFollowUp:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("use", FollowUp.USE),
            ("Use it!", FollowUp.USE),
            ("regenerate", FollowUp.REGENERATE),
            ("make  a video", FollowUp.MAKE_VIDEO),
            ("use defaults", None),
            ("make video of the serum", None),
        ],
    )
    def test_phrases(self, text, expected):
        assert parse_follow_up(text) is expected


class TestMediaLibrary:
    @pytest.mark.asyncio
    async def test_keeps_most_recent(self):
        library = MediaLibrary(limit=10)
        for i in range(12):
            asset = GeneratedAsset(kind=MediaKind.IMAGE, data=b"img", mime_type="image/png")
            await library.remember(USER, RecentMedia(asset=asset, prompt=f"prompt {i}"))

        recent = await library.recent(USER)
        assert [item.prompt for item in recent] == [f"prompt {i}" for i in range(2, 12)]
        assert (await library.latest(USER)).prompt == "prompt 11"
        assert await library.latest("someone-else") is None


class TestMediaStudio:
    @pytest.mark.asyncio
    async def test_prompt_only_image(self, studio, media, library):
        command = ContentCommand(kind=MediaKind.IMAGE, prompt="sunset beach", aspect_ratio="4:3")
        result = await studio.create(USER, command)

        assert media.calls == [(MediaKind.IMAGE, MediaRequest(prompt="sunset beach", aspect_ratio="4:3"))]
        message = result.messages[0]
        assert isinstance(message, ImageMessage)
        assert message.caption.startswith("✨ Image generated!")
        assert '• "make video" - Create video version' in message.caption
        assert (await library.latest(USER)).prompt == "sunset beach"

    @pytest.mark.asyncio
    async def test_product_by_id(self, studio, media, catalog):
        await studio.create(USER, ContentCommand(kind=MediaKind.VIDEO, prompt="slow pour", product_id="2"))
        kind, request = media.calls[0]
        assert kind is MediaKind.VIDEO
        assert request.product == catalog.products[1]

    @pytest.mark.asyncio
    async def test_unknown_product_id(self, studio, media):
        result = await studio.create(USER, ContentCommand(kind=MediaKind.IMAGE, prompt="beach", product_id="99"))
        assert _text(result) == prompts.product_not_found("product=99")
        assert media.calls == []

    @pytest.mark.asyncio
    async def test_product_by_name(self, studio, media, memory):
        await studio.create(USER, ContentCommand(kind=MediaKind.IMAGE, prompt="beach", product_query="moringa shampoo"))
        assert media.calls[0][1].product.name == "Moringa Shampoo"
        assert (await memory.get(USER)).last_entity.name == "Moringa Shampoo"

    @pytest.mark.asyncio
    async def test_ambiguous_name_lists_ids(self, studio, media):
        command = ContentCommand(kind=MediaKind.IMAGE, prompt="beach", product_query="argan repair")
        result = await studio.create(USER, command)
        assert "Several products match" in _text(result)
        assert "Argan Oil Serum (product=4)" in _text(result)
        assert media.calls == []

    @pytest.mark.asyncio
    async def test_generation_failure(self, studio, media, library):
        media.fail = True
        result = await studio.create(USER, ContentCommand(kind=MediaKind.IMAGE, prompt="sunset beach"))
        assert _text(result).startswith("❌ Error: quota exceeded")
        assert await library.latest(USER) is None

    @pytest.mark.asyncio
    async def test_catalog_failure(self, studio, catalog):
        catalog.fail = True
        result = await studio.create(USER, ContentCommand(kind=MediaKind.IMAGE, prompt="beach", product_id="2"))
        assert "catalog offline" in _text(result)

    @pytest.mark.asyncio
    async def test_edit_is_explained(self, studio, media):
        result = await studio.create(USER, ContentCommand(kind=MediaKind.IMAGE, prompt="brighter", edit=True))
        assert _text(result) == prompts.EDIT_UNSUPPORTED
        assert media.calls == []

    @pytest.mark.asyncio
    async def test_needs_prompt_or_product(self, studio, media):
        result = await studio.create(USER, ContentCommand(kind=MediaKind.IMAGE, prompt=""))
        assert _text(result) == prompts.CONTENT_USAGE
        assert media.calls == []


class TestFollowUps:
    @pytest.mark.asyncio
    async def test_nothing_generated_yet(self, freeform):
        result = await freeform.handle(USER, "regenerate")
        assert _text(result) == prompts.NO_RECENT_MEDIA

    @pytest.mark.asyncio
    async def test_regenerate_repeats_request(self, freeform, media):
        await freeform.handle(USER, "image: sunset beach | ar=16:9")
        result = await freeform.handle(USER, "regenerate")

        assert "🔄 Regenerating..." in _text(result)
        assert media.calls[1] == media.calls[0]

    @pytest.mark.asyncio
    async def test_make_video_animates_last_image(self, freeform, media, library):
        await freeform.handle(USER, "image: sunset beach | product=2 | ar=4:3")
        result = await freeform.handle(USER, "make video")

        kind, request = media.calls[1]
        assert kind is MediaKind.VIDEO
        assert request.prompt == "Animated version of: sunset beach"
        assert request.product.name == "Moringa Shampoo"
        assert request.aspect_ratio is None
        assert isinstance(result.messages[-1], VideoMessage)
        assert (await library.latest(USER)).kind is MediaKind.VIDEO

    @pytest.mark.asyncio
    async def test_use_skips_media_step(self, freeform, engine, ads):
        await freeform.handle(USER, "image: sunset beach | product=2")
        result = await freeform.handle(USER, "use")
        assert "Using your latest media (1 image)" in _text(result)
        assert 'Detected: "Moringa Shampoo"' in _text(result)

        result = await engine.advance(USER, "yes")
        assert "Using your generated media" in _text(result)
        assert "Step 3/5" in _text(result)

        await engine.advance(USER, "sales")
        await engine.advance(USER, "30")
        await engine.advance(USER, "1")
        assert ads.created[0].image == b"image"
        assert ads.created[0].product.name == "Moringa Shampoo"

    @pytest.mark.asyncio
    async def test_use_prompt_only_media_with_any_product(self, freeform, engine, ads):
        await freeform.handle(USER, "image: sunset beach")
        await freeform.handle(USER, "use")
        session = await engine.session(USER)
        assert session.workflow is WorkflowKind.CREATE_CAMPAIGN
        assert session.data.media_product_id is None

        result = await engine.advance(USER, "shampoo")
        assert "Step 3/5" in _text(result)
