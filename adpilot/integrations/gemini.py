import asyncio

import aiohttp
import httpx
from google import genai
from google.genai import errors, types

from adpilot.constants import (
    IMAGE_ASPECT_RATIO,
    IMAGE_PACK_ASPECT_RATIOS,
    VIDEO_ASPECT_RATIO,
    VIDEO_DURATION_SECONDS,
    VIDEO_POLL_INTERVAL,
    VIDEO_TIMEOUT,
)
from adpilot.errors import CollaboratorError
from adpilot.integrations.base import MediaGenerator
from adpilot.integrations.models import GeneratedAsset, MediaKind, MediaRequest
from adpilot.integrations.retry import with_retry
from adpilot.logging import get_logger

_logger = get_logger(__name__)


def _with_product(prompt: str, request: MediaRequest) -> str:
    product = request.product
    if product is None:
        return prompt
    prompt += f". Featuring {product.name}"
    if product.description:
        prompt += f": {product.description[:200]}"
    return prompt


def image_prompt(request: MediaRequest) -> str:
    if request.prompt:
        return _with_product(request.prompt, request)
    product = request.product
    if product is None:
        raise ValueError("image request needs a prompt or a product")
    prompt = f"Professional product photography of {product.name}, studio lighting, clean background"
    if product.description:
        prompt += f". Product details: {product.description[:200]}"
    return prompt


def video_prompt(request: MediaRequest) -> str:
    if request.prompt:
        return _with_product(request.prompt, request)
    if request.product is None:
        raise ValueError("video request needs a prompt or a product")
    return f"UGC style video showcasing {request.product.name}, natural lighting, authentic feel"


class GeminiMediaGenerator(MediaGenerator):
    """Imagen for stills, Veo for video, both through google-genai."""

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        image_model: str = "imagen-4.0-generate-001",
        video_model: str = "veo-3.0-generate-001",
    ):
        self._client = genai.Client(api_key=api_key)
        self.image_model = image_model
        self.video_model = video_model

    async def generate(self, kind: MediaKind, request: MediaRequest) -> GeneratedAsset:
        try:
            match kind:
                case MediaKind.IMAGE:
                    data, mime = await self._image(image_prompt(request), request.aspect_ratio or IMAGE_ASPECT_RATIO)
                    return GeneratedAsset(kind=kind, data=data, mime_type=mime)
                case MediaKind.IMAGE_PACK:
                    prompt = image_prompt(request)
                    results = await asyncio.gather(*(self._image(prompt, ratio) for ratio in IMAGE_PACK_ASPECT_RATIOS))
                    (data, mime), *rest = results
                    return GeneratedAsset(kind=kind, data=data, mime_type=mime, variants=[d for d, _ in rest])
                case MediaKind.VIDEO:
                    data = await self._video(
                        video_prompt(request),
                        request.aspect_ratio or VIDEO_ASPECT_RATIO,
                        request.duration_seconds or VIDEO_DURATION_SECONDS,
                    )
                    return GeneratedAsset(kind=kind, data=data, mime_type="video/mp4")
        except errors.APIError as e:
            raise CollaboratorError(self.name, f"Media generation failed: {e.message or e}") from e
        except TimeoutError as e:
            raise CollaboratorError(self.name, "Generation timed out") from e
        except (httpx.HTTPError, aiohttp.ClientError) as e:
            raise CollaboratorError(self.name, f"Media service unreachable: {e}") from e

    async def _image(self, prompt: str, aspect_ratio: str) -> tuple[bytes, str]:
        response = await with_retry(
            self._client.aio.models.generate_images,
            model=self.image_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(number_of_images=1, aspect_ratio=aspect_ratio),
        )
        if not response.generated_images:
            raise CollaboratorError(self.name, "No image returned (the prompt may have been filtered)")
        image = response.generated_images[0].image
        return image.image_bytes, image.mime_type or "image/png"

    async def _video(self, prompt: str, aspect_ratio: str, duration: int) -> bytes:
        operation = await with_retry(
            self._client.aio.models.generate_videos,
            model=self.video_model,
            prompt=prompt,
            config=types.GenerateVideosConfig(
                number_of_videos=1,
                aspect_ratio=aspect_ratio,
                duration_seconds=duration,
            ),
        )
        async with asyncio.timeout(VIDEO_TIMEOUT):
            while not operation.done:
                await asyncio.sleep(VIDEO_POLL_INTERVAL)
                operation = await self._client.aio.operations.get(operation)

        if operation.error:
            raise CollaboratorError(self.name, f"Video generation failed: {operation.error}")
        videos = operation.response.generated_videos if operation.response else None
        if not videos:
            raise CollaboratorError(self.name, "No video returned")
        video = videos[0].video
        _logger.info("Video ready for prompt %r", prompt[:60])
        return video.video_bytes or await self._client.aio.files.download(file=video)
