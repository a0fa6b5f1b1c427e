"""Public price list."""

from fastapi import APIRouter

from src.api.core.dependencies import PricingCatalogDep
from src.api.core.messages import APIResponse, MessageCode
from src.api.pricing.schemas import PricingEntryModel, PricingListResponse

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get("", response_model=PricingListResponse)
async def list_pricing(catalog: PricingCatalogDep) -> PricingListResponse:
    """Active catalog entries."""
    entries = await catalog.get_active_pricing()
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=[PricingEntryModel.model_validate(entry) for entry in entries],
    )
