from adpilot.integrations.base import AdPlatform, Catalog, Copywriter, MediaGenerator, Transport
from adpilot.integrations.models import (
    AdCopy,
    Audience,
    CampaignResult,
    CampaignSpec,
    CampaignSummary,
    GeneratedAsset,
    MediaKind,
    MediaRequest,
)

__all__ = [
    "AdCopy",
    "AdPlatform",
    "Audience",
    "CampaignResult",
    "CampaignSpec",
    "CampaignSummary",
    "Catalog",
    "Copywriter",
    "GeneratedAsset",
    "MediaGenerator",
    "MediaKind",
    "MediaRequest",
    "Transport",
]
