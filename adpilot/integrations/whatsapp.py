from typing import Any

import aiohttp

from adpilot.constants import CAPTION_LIMIT, GRAPH_API_URL, HTTP_TIMEOUT, MEDIA_UPLOAD_TIMEOUT, TEXT_MESSAGE_LIMIT
from adpilot.errors import CollaboratorError
from adpilot.integrations.base import Transport
from adpilot.integrations.retry import with_retry
from adpilot.logging import get_logger
from adpilot.messages import Content, ImageMessage, TextMessage, VideoMessage

_logger = get_logger(__name__)

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "video/mp4": "mp4"}


def split_text(text: str, limit: int = TEXT_MESSAGE_LIMIT) -> list[str]:
    """Split on line boundaries so each chunk fits one WhatsApp message."""
    if len(text) <= limit:
        return [text]
    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


class WhatsAppTransport(Transport):
    channel = "whatsapp"

    @classmethod
    def from_config(cls, config: Any) -> "WhatsAppTransport":
        if not config.whatsapp_configured:
            raise RuntimeError("WHATSAPP_PHONE_NUMBER_ID and WHATSAPP_ACCESS_TOKEN must be set")
        return cls(phone_number_id=config.whatsapp_phone_number_id, access_token=config.whatsapp_access_token)

    def __init__(self, phone_number_id: str, access_token: str, base_url: str = GRAPH_API_URL):
        self._phone_number_id = phone_number_id
        self._token = access_token
        self._base_url = base_url

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def send(self, user_id: str, content: Content) -> None:
        try:
            await self._send(user_id, content)
        except aiohttp.ClientResponseError as e:
            raise CollaboratorError(self.channel, f"WhatsApp API error ({e.status}): {e.message}") from e
        except (aiohttp.ClientError, TimeoutError) as e:
            raise CollaboratorError(self.channel, f"WhatsApp request failed: {e}") from e

    async def _send(self, user_id: str, content: Content) -> None:
        match content:
            case TextMessage(text=text):
                for chunk in split_text(text):
                    await with_retry(self._post_message, user_id, "text", {"preview_url": False, "body": chunk})
            case ImageMessage(data=data, mime_type=mime_type, caption=caption):
                media_id = await with_retry(self.upload_media, data, mime_type)
                await with_retry(self._post_message, user_id, "image", self._media_body(media_id, caption))
            case VideoMessage(data=data, mime_type=mime_type, caption=caption):
                media_id = await with_retry(self.upload_media, data, mime_type)
                await with_retry(self._post_message, user_id, "video", self._media_body(media_id, caption))

    @staticmethod
    def _media_body(media_id: str, caption: str) -> dict[str, str]:
        body = {"id": media_id}
        if caption:
            body["caption"] = caption[:CAPTION_LIMIT]
        return body

    async def upload_media(self, data: bytes, mime_type: str) -> str:
        form = aiohttp.FormData()
        filename = f"media.{_EXTENSIONS.get(mime_type, 'bin')}"
        form.add_field("file", data, filename=filename, content_type=mime_type)
        form.add_field("type", mime_type)
        form.add_field("messaging_product", "whatsapp")

        timeout = aiohttp.ClientTimeout(total=MEDIA_UPLOAD_TIMEOUT)
        payload = await self._post("media", timeout, data=form)
        _logger.debug("Uploaded %d bytes of %s as %s", len(data), mime_type, payload["id"])
        return payload["id"]

    async def _post_message(self, to: str, kind: str, body: dict[str, Any]) -> None:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": kind,
            kind: body,
        }
        await self._post("messages", aiohttp.ClientTimeout(total=HTTP_TIMEOUT), json=payload)

    async def _post(self, endpoint: str, timeout: aiohttp.ClientTimeout, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}/{self._phone_number_id}/{endpoint}"
        async with (
            aiohttp.ClientSession(timeout=timeout) as session,
            session.post(url, headers=self._headers, **kwargs) as resp,
        ):
            if resp.status >= 400:
                raise aiohttp.ClientResponseError(
                    resp.request_info,
                    resp.history,
                    status=resp.status,
                    message=await resp.text(),
                )
            return await resp.json()
