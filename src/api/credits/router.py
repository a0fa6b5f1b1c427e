"""Credits domain router."""

from fastapi import APIRouter, Query

from src.api.core.constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from src.api.core.dependencies import (
    CurrentAccountDep,
    LedgerServiceDep,
    PricingCatalogDep,
)
from src.api.core.exceptions.base import InvalidRequestError
from src.api.core.messages import APIResponse, MessageCode, Paginated, PaginationInfo
from src.database.models import CreditEventKind
from src.modules.pricing.constants import ServiceCode
from src.api.credits.schemas import (
    BalanceModel,
    BalanceResponse,
    CanAffordModel,
    CanAffordRequest,
    CanAffordResponse,
    DeductionModel,
    DeductionResponse,
    DeductRequest,
    LedgerEntryModel,
    LedgerHistoryResponse,
)

router = APIRouter(
    prefix="/credits",
    tags=["credits"],
)

# Catalog codes that may be charged through the generic deduct endpoint;
# edits go through /edits/record so their quota applies
_SPEND_EVENT_KINDS: dict[ServiceCode, CreditEventKind] = {
    ServiceCode.EBOOK_GENERATION: CreditEventKind.EBOOK_GENERATION,
    ServiceCode.AUDIOBOOK_GENERATION: CreditEventKind.AUDIOBOOK_GENERATION,
    ServiceCode.PRINT_ORDER: CreditEventKind.PRINT_ORDER,
    ServiceCode.SELF_PRINT: CreditEventKind.SELF_PRINT,
}


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    account: CurrentAccountDep,
    ledger: LedgerServiceDep,
) -> BalanceResponse:
    """Current projected balance of the calling account."""
    balance = await ledger.get_balance(account.account_id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=BalanceModel(account_id=account.account_id, balance=balance),
    )


@router.get("/history", response_model=LedgerHistoryResponse)
async def get_history(
    account: CurrentAccountDep,
    ledger: LedgerServiceDep,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    offset: int = Query(0, ge=0),
) -> LedgerHistoryResponse:
    """Ledger entries, newest first."""
    entries, total = await ledger.get_history(account.account_id, limit, offset)
    items = [LedgerEntryModel.model_validate(entry) for entry in entries]
    pagination_info = PaginationInfo(
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(items) < total,
    )
    paginated_data = Paginated[LedgerEntryModel](
        items=items,
        pagination=pagination_info,
    )
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=paginated_data)


@router.post("/can-afford", response_model=CanAffordResponse)
async def can_afford(
    body: CanAffordRequest,
    account: CurrentAccountDep,
    ledger: LedgerServiceDep,
    catalog: PricingCatalogDep,
) -> CanAffordResponse:
    """Check a raw amount or the summed price of catalog features."""
    if body.amount is None and not body.service_codes:
        raise InvalidRequestError("Provide an amount or at least one service code")

    missing: list[str] = []
    if body.amount is not None:
        required = body.amount
    else:
        cost = await catalog.calculate_credits_for_features(body.service_codes)
        required = cost.total_credits
        missing = cost.missing

    balance = await ledger.get_balance(account.account_id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=CanAffordModel(
            can_afford=not missing and balance >= required,
            required=required,
            balance=balance,
            missing_service_codes=missing,
        ),
    )


@router.post("/deduct", response_model=DeductionResponse)
async def deduct_credits(
    body: DeductRequest,
    account: CurrentAccountDep,
    ledger: LedgerServiceDep,
    catalog: PricingCatalogDep,
) -> DeductionResponse:
    """Charge the catalog price of a story feature. Shortfall answers 402."""
    event_kind = _SPEND_EVENT_KINDS.get(body.service_code)
    if event_kind is None:
        raise InvalidRequestError(
            f"{body.service_code.value} cannot be charged directly",
            details={"service_code": body.service_code.value},
        )

    credits = await catalog.get_credits(body.service_code.value)
    if credits is None:
        raise InvalidRequestError(
            f"No active price for {body.service_code.value}",
            details={"service_code": body.service_code.value},
            message_code=MessageCode.PRICING_NOT_FOUND,
        )

    if credits == 0:
        balance = await ledger.get_balance(account.account_id)
        return APIResponse.success(
            message_code=MessageCode.SUCCESS,
            data=DeductionModel(entry=None, credits_charged=0, balance=balance),
        )

    entry = await ledger.deduct_credits(
        account.account_id, credits, event_kind, story_id=body.story_id
    )
    return APIResponse.success(
        message_code=MessageCode.CREDITS_DEDUCTED,
        data=DeductionModel(
            entry=LedgerEntryModel.model_validate(entry),
            credits_charged=credits,
            balance=entry.balance_after,
        ),
    )
