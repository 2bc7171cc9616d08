import re
from dataclasses import dataclass
from enum import StrEnum

from adpilot.catalog.resolution import Ambiguous, Match, NotFound, resolve
from adpilot.constants import IMAGE_ASPECT_RATIOS, VIDEO_ASPECT_RATIOS, VIDEO_DURATION_SECONDS, VIDEO_MIN_SECONDS
from adpilot.conversation.library import RecentMedia
from adpilot.errors import CollaboratorError
from adpilot.events import MediaGenerated
from adpilot.integrations.models import GeneratedAsset, MediaKind, MediaRequest
from adpilot.logging import get_logger
from adpilot.messages import Content, ImageMessage, VideoMessage
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, WorkflowDeps
from adpilot.workflows.selection import Selection

_logger = get_logger(__name__)


async def generate_media(deps: WorkflowDeps, user_id: str, kind: MediaKind, request: MediaRequest) -> GeneratedAsset:
    """Generate one asset, announce it and keep it for follow-ups. Raises CollaboratorError."""
    asset = await deps.media.generate(kind, request)
    product_id = request.product.id if request.product else None
    deps.channel.publish(MediaGenerated(user_id=user_id, product_id=product_id, kind=kind.value))
    await deps.library.remember(user_id, RecentMedia.from_request(asset, request))
    return asset


def asset_messages(asset: GeneratedAsset, caption: str) -> list[Content]:
    if asset.is_video:
        return [VideoMessage(data=asset.data, mime_type=asset.mime_type, caption=caption)]
    messages: list[Content] = [ImageMessage(data=asset.data, mime_type=asset.mime_type, caption=caption)]
    messages += [ImageMessage(data=variant, mime_type=asset.mime_type) for variant in asset.variants]
    return messages


class FollowUp(StrEnum):
    USE = "use"
    REGENERATE = "regenerate"
    MAKE_VIDEO = "make video"


_FOLLOW_UPS = {
    "use": FollowUp.USE,
    "use it": FollowUp.USE,
    "use this": FollowUp.USE,
    "use in campaign": FollowUp.USE,
    "regenerate": FollowUp.REGENERATE,
    "regenerate it": FollowUp.REGENERATE,
    "make video": FollowUp.MAKE_VIDEO,
    "make a video": FollowUp.MAKE_VIDEO,
    "make it a video": FollowUp.MAKE_VIDEO,
    "animate it": FollowUp.MAKE_VIDEO,
}


def parse_follow_up(text: str) -> FollowUp | None:
    """Whole-message replies to the last generated asset."""
    return _FOLLOW_UPS.get(" ".join(text.lower().strip(" .!").split()))


@dataclass(frozen=True)
class ContentCommand:
    kind: MediaKind
    prompt: str
    product_id: str | None = None
    product_query: str | None = None
    aspect_ratio: str | None = None
    duration_seconds: int | None = None
    edit: bool = False


_STRUCTURED_RE = re.compile(r"^(image|video|edit)\s*:\s*(.+)$", re.IGNORECASE | re.DOTALL)
_PARAM_RE = re.compile(r"^(\w+)\s*=\s*(.*)$", re.DOTALL)

_ASK_WORDS = "create|generate|make|show me|i need|i want"
_ASKS = rf"(?:{_ASK_WORDS})"
_IMAGE_RE = re.compile(rf"\b{_ASKS}\b.*\b(?:image|photo|picture|visual|graphic)s?\b", re.IGNORECASE)
_VIDEO_RE = re.compile(rf"\b{_ASKS}\b.*\b(?:video|clip|motion|animated|moving)\b", re.IGNORECASE)
_FILLER_RE = re.compile(rf"\b(?:{_ASK_WORDS}|an?|the)\s+", re.IGNORECASE)
_IMAGE_WORDS_RE = re.compile(r"\s*\b(?:images?|photos?|pictures?|visuals?|graphics?|of|for)\b\s*", re.IGNORECASE)
_VIDEO_WORDS_RE = re.compile(r"\s*\b(?:video clip|video|motion|animated|moving|of|for)\b\s*", re.IGNORECASE)
_DURATION_RE = re.compile(r"(\d+)\s*(?:seconds?|secs?|s)\b", re.IGNORECASE)

# Checked in order; the first word found decides
_ASPECT_WORDS = (
    ("1:1", ("square", "1:1")),
    ("16:9", ("landscape", "16:9", "wide")),
    ("9:16", ("portrait", "9:16", "story", "vertical")),
)

MIN_PROMPT_LENGTH = 6


def allowed_ratios(kind: MediaKind) -> tuple[str, ...]:
    return VIDEO_ASPECT_RATIOS if kind is MediaKind.VIDEO else IMAGE_ASPECT_RATIOS


def normalize_aspect_ratio(value: str | None, kind: MediaKind) -> str | None:
    """``"16x9"`` -> ``"16:9"``; None when the model can't render it."""
    if not value:
        return None
    ratio = value.strip().lower().replace("x", ":").replace("/", ":")
    return ratio if ratio in allowed_ratios(kind) else None


def detect_aspect_ratio(text: str, kind: MediaKind) -> str | None:
    lower = text.lower()
    for ratio, words in _ASPECT_WORDS:
        if any(word in lower for word in words):
            return normalize_aspect_ratio(ratio, kind)
    return None


def clamp_duration(seconds: int) -> int:
    return min(max(seconds, VIDEO_MIN_SECONDS), VIDEO_DURATION_SECONDS)


def _structured(word: str, body: str) -> ContentCommand:
    prompt, *params = [part.strip() for part in body.split("|")]
    options: dict[str, str] = {}
    for param in params:
        if m := _PARAM_RE.match(param):
            options[m.group(1).lower()] = m.group(2).strip().strip("\"'")

    kind = MediaKind.VIDEO if word == "video" else MediaKind.IMAGE
    duration = options.get("dur", "")
    return ContentCommand(
        kind=kind,
        prompt=prompt,
        product_id=options.get("product") or None,
        product_query=options.get("find") or None,
        aspect_ratio=normalize_aspect_ratio(options.get("ar"), kind),
        duration_seconds=clamp_duration(int(duration)) if kind is MediaKind.VIDEO and duration.isdigit() else None,
        edit=word == "edit",
    )


def _natural(text: str) -> ContentCommand | None:
    if "campaign" in text.lower():
        return None

    if _VIDEO_RE.search(text):
        kind, words = MediaKind.VIDEO, _VIDEO_WORDS_RE
    elif _IMAGE_RE.search(text):
        kind, words = MediaKind.IMAGE, _IMAGE_WORDS_RE
    else:
        return None

    prompt = " ".join(words.sub(" ", _FILLER_RE.sub("", text)).split())
    if len(prompt) < MIN_PROMPT_LENGTH:
        return None

    duration = None
    if kind is MediaKind.VIDEO and (m := _DURATION_RE.search(text)):
        duration = clamp_duration(int(m.group(1)))
    return ContentCommand(
        kind=kind,
        prompt=prompt,
        aspect_ratio=detect_aspect_ratio(text, kind),
        duration_seconds=duration,
    )


def parse_content_command(text: str) -> ContentCommand | None:
    """``image: <prompt> | find="name" | ar=16:9`` or a plain-language request.

    Plain requests need a subject ("generate image" alone is the menu
    shortcut) and never mention campaigns.
    """
    text = text.strip()
    if m := _STRUCTURED_RE.match(text):
        return _structured(m.group(1).lower(), m.group(2))
    return _natural(text)


class MediaStudio:
    """Free-form media requests and replies to the last generated asset."""

    def __init__(self, deps: WorkflowDeps):
        self.deps = deps

    async def create(self, user_id: str, command: ContentCommand) -> StepResult:
        if command.edit:
            return StepResult().say(prompts.EDIT_UNSUPPORTED)
        try:
            selection = await self._product(user_id, command)
        except CollaboratorError as e:
            _logger.warning("Product lookup failed for %s: %s", user_id, e)
            return StepResult().say(prompts.content_failed(e))
        if selection.reply:
            return StepResult().say(selection.reply)
        if not command.prompt and selection.product is None:
            return StepResult().say(prompts.CONTENT_USAGE)

        request = MediaRequest(
            product=selection.product,
            prompt=command.prompt,
            aspect_ratio=command.aspect_ratio,
            duration_seconds=command.duration_seconds,
        )
        return await self._generate(user_id, command.kind, request)

    async def _product(self, user_id: str, command: ContentCommand) -> Selection:
        if command.product_id:
            product = await self.deps.catalog.get(command.product_id)
            if product is None:
                return Selection(reply=prompts.product_not_found(f"product={command.product_id}"))
            return Selection(product=product)

        if not (query := command.product_query):
            return Selection()
        match resolve(query, await self.deps.catalog.search(query)):
            case Match(entity=entity):
                await self.deps.memory.set_last_entity(user_id, entity)
                return Selection(product=entity)
            case Ambiguous(candidates=candidates):
                return Selection(reply=prompts.content_ambiguous(query, [c.entity for c in candidates]))
            case NotFound():
                return Selection(reply=prompts.product_not_found(query))

    async def _generate(self, user_id: str, kind: MediaKind, request: MediaRequest) -> StepResult:
        try:
            asset = await generate_media(self.deps, user_id, kind, request)
        except CollaboratorError as e:
            _logger.warning("Content generation failed for %s: %s", user_id, e)
            return StepResult().say(prompts.content_failed(e))
        return StepResult(messages=asset_messages(asset, prompts.content_caption(asset, request)))

    async def follow_up(self, user_id: str, action: FollowUp, latest: RecentMedia) -> StepResult:
        """Regenerate or animate ``latest``; USE belongs to the campaign flow."""
        match action:
            case FollowUp.REGENERATE:
                result = StepResult().say("🔄 Regenerating...")
                return result.extend(await self._generate(user_id, latest.kind, latest.request()))
            case FollowUp.MAKE_VIDEO:
                aspect_ratio = latest.aspect_ratio if latest.aspect_ratio in VIDEO_ASPECT_RATIOS else None
                request = MediaRequest(
                    product=latest.product,
                    prompt=f"Animated version of: {latest.prompt}" if latest.prompt else "",
                    aspect_ratio=aspect_ratio,
                )
                result = StepResult().say("🎬 Creating video version...")
                return result.extend(await self._generate(user_id, MediaKind.VIDEO, request))
            case _:
                raise ValueError(f"{action} is not a media follow-up")
