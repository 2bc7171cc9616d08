from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from adpilot.catalog.models import Product
from adpilot.integrations.models import AdCopy, Audience, GeneratedAsset, MediaKind


class WorkflowKind(StrEnum):
    MAIN_MENU = "main_menu"
    CREATE_CAMPAIGN = "create_campaign"
    GENERATE_MEDIA = "generate_media"
    MANAGE_CAMPAIGNS = "manage_campaigns"
    ANALYZE_PERFORMANCE = "analyze_performance"
    MANAGE_PRODUCTS = "manage_products"


class MenuData(BaseModel):
    kind: Literal["menu"] = "menu"


class CampaignDraft(BaseModel):
    kind: Literal["campaign"] = "campaign"
    product_query: str | None = None
    product: Product | None = None
    media: GeneratedAsset | None = None
    # Product the media was made for; None for prompt-only media
    media_product_id: str | None = None
    objective: str | None = None
    objective_label: str | None = None
    budget: float | None = None
    duration: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    audience: Audience | None = None
    ad_copy: AdCopy | None = None


class MediaDraft(BaseModel):
    kind: Literal["media"] = "media"
    product: Product | None = None
    media_kind: MediaKind | None = None


class ProductBrowse(BaseModel):
    kind: Literal["products"] = "products"
    shown: list[Product] = Field(default_factory=list)


WorkflowData = Annotated[MenuData | CampaignDraft | MediaDraft | ProductBrowse, Field(discriminator="kind")]


class UserSession(BaseModel):
    """Active workflow for one user. No stored session means the user is idle."""

    workflow: WorkflowKind
    step: int = 0
    data: WorkflowData = Field(default_factory=MenuData)
    last_activity: datetime = Field(default_factory=lambda: datetime.now(UTC))
