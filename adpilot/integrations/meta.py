import base64
from typing import Any

import httpx

from adpilot.constants import (
    CAMPAIGN_NAME_LIMIT,
    DEFAULT_CAMPAIGN_STATUS,
    GRAPH_API_URL,
    HTTP_TIMEOUT,
    MEDIA_UPLOAD_TIMEOUT,
)
from adpilot.errors import CollaboratorError
from adpilot.integrations.base import AdPlatform
from adpilot.integrations.models import CampaignResult, CampaignSpec, CampaignSummary
from adpilot.integrations.retry import with_retry
from adpilot.logging import get_logger

_logger = get_logger(__name__)

VALID_STATUSES = {"ACTIVE", "PAUSED"}


def to_cents(amount: float) -> int:
    return round(amount * 100)


def _graph_error(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"HTTP {resp.status_code}"


class MetaAdPlatform(AdPlatform):
    """Meta Marketing API: campaign -> ad set -> (image, creative) -> ad, everything created paused."""

    name = "meta"

    def __init__(
        self,
        access_token: str,
        ad_account_id: str | None = None,
        page_id: str | None = None,
        shop_url: str = "",
        base_url: str = GRAPH_API_URL,
    ):
        self._token = access_token
        self._account_id = ad_account_id
        self.page_id = page_id
        self.shop_url = shop_url
        self.base_url = base_url

    async def _call(self, method: str, path: str, timeout: float = HTTP_TIMEOUT, **kwargs) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.request(
                method,
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bearer {self._token}"},
                **kwargs,
            )
            resp.raise_for_status()
            return resp.json()

    async def _graph(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            return await with_retry(self._call, method, path, **kwargs)
        except httpx.HTTPStatusError as e:
            raise CollaboratorError(self.name, f"Meta API error: {_graph_error(e.response)}") from e
        except httpx.HTTPError as e:
            raise CollaboratorError(self.name, f"Meta request failed: {e}") from e

    async def account_id(self) -> str:
        if self._account_id:
            return self._account_id if self._account_id.startswith("act_") else f"act_{self._account_id}"
        accounts = await self._graph("GET", "/me/adaccounts", params={"fields": "id,name,account_id"})
        data = accounts.get("data") or []
        if not data:
            raise CollaboratorError(self.name, "No ad accounts found. Set one up in Meta Ads Manager.")
        self._account_id = f"act_{data[0]['account_id']}"
        return self._account_id

    async def upload_image(self, account: str, image: bytes, name: str) -> str:
        result = await self._graph(
            "POST",
            f"/{account}/adimages",
            data={"bytes": base64.b64encode(image).decode("ascii"), "name": name},
            timeout=MEDIA_UPLOAD_TIMEOUT,
        )
        images = result.get("images") or {}
        for entry in images.values():
            if entry.get("hash"):
                return entry["hash"]
        raise CollaboratorError(self.name, "No image hash returned from Meta")

    async def create_campaign(self, spec: CampaignSpec) -> CampaignResult:
        account = await self.account_id()

        campaign = await self._graph(
            "POST",
            f"/{account}/campaigns",
            json={
                "name": spec.name,
                "objective": spec.objective,
                "status": DEFAULT_CAMPAIGN_STATUS,
                "special_ad_categories": [],
            },
        )

        ad_set_payload: dict[str, Any] = {
            "name": f"{spec.name} - Ad Set",
            "campaign_id": campaign["id"],
            "daily_budget": to_cents(spec.daily_budget),
            "billing_event": "IMPRESSIONS",
            "optimization_goal": "OFFSITE_CONVERSIONS" if spec.objective == "CONVERSIONS" else "REACH",
            "targeting": spec.audience.to_targeting(),
            "status": DEFAULT_CAMPAIGN_STATUS,
        }
        if spec.start_time:
            ad_set_payload["start_time"] = spec.start_time
        if spec.end_time:
            ad_set_payload["end_time"] = spec.end_time
        ad_set = await self._graph("POST", f"/{account}/adsets", json=ad_set_payload)

        creative_id = None
        if spec.image:
            if not self.page_id:
                raise CollaboratorError(self.name, "META_PAGE_ID is required to create an ad creative")
            image_hash = await self.upload_image(account, spec.image, spec.product.name or "Campaign Image")
            headline = spec.ad_copy.headline if spec.ad_copy else spec.name
            creative = await self._graph(
                "POST",
                f"/{account}/adcreatives",
                json={
                    "name": headline[:CAMPAIGN_NAME_LIMIT] or "Ad Creative",
                    "object_story_spec": {
                        "page_id": self.page_id,
                        "link_data": {
                            "image_hash": image_hash,
                            "link": spec.product.permalink or self.shop_url,
                            "message": (spec.ad_copy.text if spec.ad_copy else "") or headline,
                            "name": headline,
                        },
                    },
                },
            )
            creative_id = creative["id"]

        ad_payload: dict[str, Any] = {
            "name": f"{spec.name} - Ad",
            "adset_id": ad_set["id"],
            "status": DEFAULT_CAMPAIGN_STATUS,
        }
        if creative_id:
            ad_payload["creative"] = {"creative_id": creative_id}
        ad = await self._graph("POST", f"/{account}/ads", json=ad_payload)

        _logger.info("Created campaign %s (%s) in %s", campaign["id"], spec.name, account)
        return CampaignResult(
            campaign_id=campaign["id"],
            ad_set_id=ad_set["id"],
            ad_id=ad["id"],
            creative_id=creative_id,
        )

    async def list_campaigns(self) -> list[CampaignSummary]:
        account = await self.account_id()
        result = await self._graph(
            "GET",
            f"/{account}/campaigns",
            params={"fields": "id,name,status,objective,daily_budget", "limit": 25},
        )
        return [
            CampaignSummary(
                id=c["id"],
                name=c.get("name", ""),
                status=c.get("status", ""),
                objective=c.get("objective", ""),
                daily_budget=int(c["daily_budget"]) / 100 if c.get("daily_budget") else None,
            )
            for c in result.get("data") or []
        ]

    async def set_status(self, campaign_id: str, status: str) -> None:
        status = status.upper()
        if status not in VALID_STATUSES:
            raise CollaboratorError(self.name, f"Unsupported campaign status: {status}")
        await self._graph("POST", f"/{campaign_id}", json={"status": status})

    async def set_daily_budget(self, campaign_id: str, amount: float) -> None:
        # Budget lives on the ad sets under the campaign
        ad_sets = await self._graph("GET", f"/{campaign_id}/adsets", params={"fields": "id"})
        ids = [a["id"] for a in ad_sets.get("data") or []]
        if not ids:
            raise CollaboratorError(self.name, f"Campaign {campaign_id} has no ad sets")
        for ad_set_id in ids:
            await self._graph("POST", f"/{ad_set_id}", json={"daily_budget": to_cents(amount)})
