"""Promotion code redemption router."""

from fastapi import APIRouter, status

from src.api.core.dependencies import CurrentAccountDep, PromotionServiceDep
from src.api.core.exceptions.base import StoryledgerException
from src.api.core.messages import APIResponse, MessageCode
from src.api.promotions.schemas import RedeemRequest, RedemptionModel, RedemptionResponse

router = APIRouter(prefix="/promotions", tags=["promotions"])


@router.post("/redeem", response_model=RedemptionResponse)
async def redeem_code(
    body: RedeemRequest,
    account: CurrentAccountDep,
    service: PromotionServiceDep,
) -> RedemptionResponse:
    """Redeem a promotion code. Every rejection looks the same to the caller."""
    result = await service.redeem(account.account_id, body.code)
    if not result.ok:
        raise StoryledgerException(
            MessageCode.INVALID_PROMOTION_CODE,
            status.HTTP_400_BAD_REQUEST,
            details={"error": result.error},
        )
    return APIResponse.success(
        message_code=MessageCode.PROMOTION_REDEEMED,
        data=RedemptionModel(
            code=result.code,
            credits_granted=result.credits_granted,
            balance=result.new_balance,
        ),
    )
