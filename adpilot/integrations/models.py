import base64
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, Field, PlainSerializer, PlainValidator

from adpilot.catalog.models import Product
from adpilot.constants import (
    DEFAULT_AGE_MAX,
    DEFAULT_AGE_MIN,
    DEFAULT_CALL_TO_ACTION,
    DEFAULT_GENDERS,
    DEFAULT_INTERESTS,
)
from adpilot.messages import format_money


def _decode_bytes(v: Any) -> bytes:
    if isinstance(v, bytes):
        return v
    if isinstance(v, str):
        return base64.b64decode(v)
    raise ValueError("expected bytes or base64 string")


# Raw media survives JSON session storage as base64
Base64Bytes = Annotated[
    bytes,
    PlainValidator(_decode_bytes),
    PlainSerializer(lambda v: base64.b64encode(v).decode("ascii"), return_type=str, when_used="json"),
]


class MediaKind(StrEnum):
    IMAGE = "image"
    IMAGE_PACK = "image_pack"
    VIDEO = "video"


class MediaRequest(BaseModel):
    """What to generate. A custom ``prompt`` wins over the product-derived one."""

    product: Product | None = None
    prompt: str = ""
    aspect_ratio: str | None = None
    duration_seconds: int | None = None


class GeneratedAsset(BaseModel):
    kind: MediaKind
    data: Base64Bytes
    mime_type: str
    # Extra images of an image pack (portrait, story); the square one is ``data``
    variants: list[Base64Bytes] = Field(default_factory=list)

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    def describe(self) -> str:
        match self.kind:
            case MediaKind.IMAGE_PACK:
                return f"{1 + len(self.variants)} images"
            case MediaKind.VIDEO:
                return "1 video"
            case _:
                return "1 image"


class Audience(BaseModel):
    age_min: int = DEFAULT_AGE_MIN
    age_max: int = DEFAULT_AGE_MAX
    genders: list[int] = Field(default_factory=lambda: list(DEFAULT_GENDERS))
    interests: list[str] = Field(default_factory=lambda: list(DEFAULT_INTERESTS))

    def describe(self) -> str:
        interest = self.interests[0].lower() if self.interests else "general"
        return f"{self.age_min}-{self.age_max}, {interest}"

    def to_targeting(self) -> dict:
        targeting: dict[str, Any] = {
            "age_min": self.age_min,
            "age_max": self.age_max,
            "geo_locations": {"countries": ["US"]},
        }
        if self.genders:
            targeting["genders"] = self.genders
        return targeting


class AdCopy(BaseModel):
    headline: str
    text: str = ""
    call_to_action: str = DEFAULT_CALL_TO_ACTION

    @classmethod
    def default_for(cls, product: Product) -> "AdCopy":
        return cls(
            headline=product.name,
            text=f"Discover {product.name} - {product.description or 'Premium quality product'}",
        )


class CampaignSpec(BaseModel):
    name: str
    objective: str
    daily_budget: float
    product: Product
    audience: Audience = Field(default_factory=Audience)
    ad_copy: AdCopy | None = None
    image: Base64Bytes | None = None
    start_time: str | None = None
    end_time: str | None = None


class CampaignResult(BaseModel):
    campaign_id: str
    ad_set_id: str
    ad_id: str
    creative_id: str | None = None


class CampaignSummary(BaseModel):
    id: str
    name: str
    status: str
    objective: str = ""
    daily_budget: float | None = None

    def summary_line(self) -> str:
        budget = f" - {format_money(self.daily_budget)}/day" if self.daily_budget is not None else ""
        return f"{self.name} ({self.id}) {self.status}{budget}"
