from adpilot.errors import CollaboratorError
from adpilot.integrations.base import AdPlatform, Catalog, MediaGenerator
from adpilot.integrations.models import CampaignResult, CampaignSpec, CampaignSummary, GeneratedAsset, MediaKind, MediaRequest


class UnconfiguredCatalog(Catalog):
    name = "catalog"

    def _fail(self) -> CollaboratorError:
        return CollaboratorError(self.name, "WooCommerce not configured. Set WC_API_URL, WC_API_KEY and WC_API_SECRET.")

    async def search(self, query: str):
        raise self._fail()

    async def list_products(self, limit: int):
        raise self._fail()

    async def get(self, product_id: str):
        raise self._fail()


class UnconfiguredMediaGenerator(MediaGenerator):
    name = "media"

    async def generate(self, kind: MediaKind, request: MediaRequest) -> GeneratedAsset:
        raise CollaboratorError(self.name, "Media generation not configured. Set GEMINI_API_KEY.")


class UnconfiguredAdPlatform(AdPlatform):
    name = "ads"

    def _fail(self) -> CollaboratorError:
        return CollaboratorError(self.name, "Meta ads not configured. Set META_ACCESS_TOKEN.")

    async def create_campaign(self, spec: CampaignSpec) -> CampaignResult:
        raise self._fail()

    async def list_campaigns(self) -> list[CampaignSummary]:
        raise self._fail()

    async def set_status(self, campaign_id: str, status: str) -> None:
        raise self._fail()

    async def set_daily_budget(self, campaign_id: str, amount: float) -> None:
        raise self._fail()
