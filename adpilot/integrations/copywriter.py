import json
import re
from collections.abc import Sequence

import litellm
from pydantic import ValidationError

from adpilot.catalog.models import Product
from adpilot.constants import AUDIENCE_TEMPERATURE, CHAT_TEMPERATURE, COPY_TEMPERATURE
from adpilot.conversation.models import HistoryEntry
from adpilot.errors import CollaboratorError
from adpilot.integrations.base import Copywriter
from adpilot.integrations.models import AdCopy, Audience
from adpilot.logging import get_logger

_logger = get_logger(__name__)

_JSON_RE = re.compile(r"\{[\s\S]*\}")

AUDIENCE_PROMPT = """Generate a Facebook/Instagram ad audience for {name}.
Description: {description}
Return JSON only: {{"age_min": int, "age_max": int, "genders": [1 for men, 2 for women], "interests": [str]}}"""

COPY_PROMPT = """Write compelling Facebook/Instagram ad copy for {name}.
Price: {price}
Description: {description}
Return JSON only: {{"headline": "...", "text": "...", "call_to_action": "..."}}"""

CHAT_SYSTEM_PROMPT = """You are a campaign assistant for an online shop, chatting over WhatsApp.
You help the operator create ad campaigns, generate product images and videos, and look up products.
Keep replies short. When the operator wants to act, point them to "menu", "list products",
"create campaign for <product> $<budget>" or the slash commands (/products, /image, /campaigns)."""


def extract_json(text: str) -> dict:
    m = _JSON_RE.search(text or "")
    if not m:
        raise ValueError("no JSON object in response")
    return json.loads(m.group(0))


class LiteLLMCopywriter(Copywriter):
    def __init__(self, model: str, api_key: str | None = None):
        self.model = model
        self._api_key = api_key

    async def _complete(self, messages: list[dict], temperature: float) -> str:
        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=messages,
                temperature=temperature,
                api_key=self._api_key,
                num_retries=2,
            )
        except Exception as e:
            raise CollaboratorError("copywriter", f"Text generation failed: {e}") from e
        return response.choices[0].message.content or ""

    async def audience(self, product: Product) -> Audience:
        prompt = AUDIENCE_PROMPT.format(name=product.name, description=product.description[:200] or "n/a")
        text = await self._complete([{"role": "user", "content": prompt}], AUDIENCE_TEMPERATURE)
        try:
            return Audience.model_validate(extract_json(text))
        except (ValueError, ValidationError) as e:
            raise CollaboratorError("copywriter", f"Unreadable audience response: {e}") from e

    async def ad_copy(self, product: Product) -> AdCopy:
        prompt = COPY_PROMPT.format(
            name=product.name,
            price=f"${product.price}" if product.price else "Check website",
            description=product.description[:200] or "n/a",
        )
        text = await self._complete([{"role": "user", "content": prompt}], COPY_TEMPERATURE)
        try:
            return AdCopy.model_validate({"headline": product.name, **extract_json(text)})
        except (ValueError, ValidationError) as e:
            raise CollaboratorError("copywriter", f"Unreadable ad copy response: {e}") from e

    async def reply(self, history: Sequence[HistoryEntry], text: str) -> str:
        messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        messages += [{"role": entry.role.value, "content": entry.text} for entry in history]
        messages.append({"role": "user", "content": text})
        return (await self._complete(messages, CHAT_TEMPERATURE)).strip()
