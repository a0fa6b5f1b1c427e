"""Internal administration: catalog upkeep, account registration, audits.

Every route requires the shared admin key.
"""

from uuid import UUID

from fastapi import APIRouter, Response, status

from src.api.core.dependencies import (
    AccountServiceDep,
    AdminDep,
    CreditPackageServiceDep,
    LedgerServiceDep,
    PricingCatalogDep,
    PromotionServiceDep,
)
from src.api.core.exceptions.base import ResourceNotFoundError
from src.api.core.messages import APIResponse, MessageCode
from src.api.credits.schemas import LedgerEntryModel
from src.api.payments.schemas import CreditPackageModel
from src.api.pricing.schemas import PricingEntryModel
from src.database.models import CreditEventKind
from src.api.admin.schemas import (
    BalanceAuditModel,
    BalanceAuditResponse,
    ManualCreditRequest,
    ManualCreditResponse,
    PackageCreateRequest,
    PackageResponse,
    PackagesResponse,
    PackageUpdateRequest,
    PricingCreateRequest,
    PricingEntriesResponse,
    PricingEntryResponse,
    PricingUpdateRequest,
    PromotionCodeDetailModel,
    PromotionCodeDetailResponse,
    PromotionCodeModel,
    PromotionCodeResponse,
    PromotionCodesResponse,
    PromotionCreateRequest,
    PromotionUpdateRequest,
    RegisterAccountRequest,
    RegisteredAccountModel,
    RegisteredAccountResponse,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[AdminDep])


# Pricing catalog


@router.get("/pricing", response_model=PricingEntriesResponse)
async def list_all_pricing(catalog: PricingCatalogDep) -> PricingEntriesResponse:
    entries = await catalog.get_all_pricing()
    return APIResponse.success(
        data=[PricingEntryModel.model_validate(entry) for entry in entries]
    )


@router.post(
    "/pricing",
    response_model=PricingEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_pricing(
    body: PricingCreateRequest, catalog: PricingCatalogDep
) -> PricingEntryResponse:
    entry = await catalog.create_pricing(
        body.service_code, body.credits, body.description, body.is_active
    )
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=PricingEntryModel.model_validate(entry),
    )


@router.patch("/pricing/{pricing_id}", response_model=PricingEntryResponse)
async def update_pricing(
    pricing_id: UUID, body: PricingUpdateRequest, catalog: PricingCatalogDep
) -> PricingEntryResponse:
    entry = await catalog.update_pricing(
        pricing_id,
        credits=body.credits,
        description=body.description,
        is_active=body.is_active,
    )
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=PricingEntryModel.model_validate(entry),
    )


@router.delete("/pricing/{pricing_id}", response_model=PricingEntryResponse)
async def deactivate_pricing(
    pricing_id: UUID, catalog: PricingCatalogDep
) -> PricingEntryResponse:
    """Entries are deactivated, never deleted."""
    entry = await catalog.deactivate_pricing(pricing_id)
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=PricingEntryModel.model_validate(entry),
    )


@router.post("/pricing/seed", response_model=PricingEntriesResponse)
async def seed_pricing(catalog: PricingCatalogDep) -> PricingEntriesResponse:
    """Insert missing default service codes. Existing entries are left alone."""
    created = await catalog.seed_defaults()
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=[PricingEntryModel.model_validate(entry) for entry in created],
    )


# Credit packages


@router.get("/packages", response_model=PackagesResponse)
async def list_all_packages(packages: CreditPackageServiceDep) -> PackagesResponse:
    all_packages = await packages.get_all_packages()
    return APIResponse.success(
        data=[CreditPackageModel.model_validate(package) for package in all_packages]
    )


@router.post(
    "/packages", response_model=PackageResponse, status_code=status.HTTP_201_CREATED
)
async def create_package(
    body: PackageCreateRequest, packages: CreditPackageServiceDep
) -> PackageResponse:
    package = await packages.create_package(
        body.key, body.credits, body.price, body.popular, body.best_value
    )
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=CreditPackageModel.model_validate(package),
    )


@router.patch("/packages/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: UUID, body: PackageUpdateRequest, packages: CreditPackageServiceDep
) -> PackageResponse:
    package = await packages.update_package(
        package_id,
        credits=body.credits,
        price=body.price,
        popular=body.popular,
        best_value=body.best_value,
        is_active=body.is_active,
    )
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=CreditPackageModel.model_validate(package),
    )


@router.delete("/packages/{package_id}", response_model=PackageResponse)
async def deactivate_package(
    package_id: UUID, packages: CreditPackageServiceDep
) -> PackageResponse:
    package = await packages.deactivate_package(package_id)
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=CreditPackageModel.model_validate(package),
    )


@router.post("/packages/seed", response_model=PackagesResponse)
async def seed_packages(packages: CreditPackageServiceDep) -> PackagesResponse:
    created = await packages.seed_defaults()
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=[CreditPackageModel.model_validate(package) for package in created],
    )


# Promotion codes


@router.get("/promotions", response_model=PromotionCodesResponse)
async def list_promotion_codes(
    service: PromotionServiceDep, include_inactive: bool = True
) -> PromotionCodesResponse:
    codes = await service.list_codes(include_inactive=include_inactive)
    return APIResponse.success(
        data=[PromotionCodeModel.model_validate(code) for code in codes]
    )


@router.post(
    "/promotions",
    response_model=PromotionCodeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_promotion_code(
    body: PromotionCreateRequest, service: PromotionServiceDep
) -> PromotionCodeResponse:
    promotion = await service.create_code(**body.model_dump())
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=PromotionCodeModel.model_validate(promotion),
    )


@router.get("/promotions/{promotion_id}", response_model=PromotionCodeDetailResponse)
async def get_promotion_code(
    promotion_id: UUID, service: PromotionServiceDep
) -> PromotionCodeDetailResponse:
    promotion = await service.get_code(promotion_id)
    redemption_count = await service.get_redemption_count(promotion.id)
    return APIResponse.success(
        data=PromotionCodeDetailModel(
            **PromotionCodeModel.model_validate(promotion).model_dump(),
            redemption_count=redemption_count,
        )
    )


@router.patch("/promotions/{promotion_id}", response_model=PromotionCodeResponse)
async def update_promotion_code(
    promotion_id: UUID, body: PromotionUpdateRequest, service: PromotionServiceDep
) -> PromotionCodeResponse:
    promotion = await service.update_code(
        promotion_id, **body.model_dump(exclude_unset=True)
    )
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=PromotionCodeModel.model_validate(promotion),
    )


@router.delete("/promotions/{promotion_id}", response_model=PromotionCodeResponse)
async def deactivate_promotion_code(
    promotion_id: UUID, service: PromotionServiceDep
) -> PromotionCodeResponse:
    promotion = await service.deactivate_code(promotion_id)
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=PromotionCodeModel.model_validate(promotion),
    )


# Accounts


@router.post("/accounts", response_model=RegisteredAccountResponse)
async def register_account(
    body: RegisterAccountRequest,
    response: Response,
    accounts: AccountServiceDep,
    ledger: LedgerServiceDep,
) -> RegisteredAccountResponse:
    """Register an account from the identity layer. Repeat calls are no-ops."""
    account, created = await accounts.register_account(
        body.account_id, body.email, body.grant_initial_credits
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    balance = await ledger.get_balance(account.id)
    return APIResponse.success(
        message_code=MessageCode.ACCOUNT_REGISTERED if created else MessageCode.SUCCESS,
        data=RegisteredAccountModel(
            account_id=account.id,
            email=account.email,
            created=created,
            balance=balance,
        ),
    )


@router.post(
    "/accounts/{account_id}/credits",
    response_model=ManualCreditResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant_credits(
    account_id: UUID,
    body: ManualCreditRequest,
    accounts: AccountServiceDep,
    ledger: LedgerServiceDep,
) -> ManualCreditResponse:
    """Manual grant or refund, recorded in the ledger like any other movement."""
    if await accounts.get_account(account_id) is None:
        raise ResourceNotFoundError(
            MessageCode.ACCOUNT_NOT_FOUND, details={"account_id": str(account_id)}
        )
    entry = await ledger.add_credits(
        account_id,
        body.amount,
        CreditEventKind(body.event_kind),
        story_id=body.story_id,
    )
    logger.info(
        "manual_credit_granted",
        account_id=str(account_id),
        amount=body.amount,
        event_kind=body.event_kind,
    )
    return APIResponse.success(
        message_code=MessageCode.CREDITS_ADDED,
        data=LedgerEntryModel.model_validate(entry),
    )


@router.get("/accounts/{account_id}/audit", response_model=BalanceAuditResponse)
async def audit_account_balance(
    account_id: UUID,
    accounts: AccountServiceDep,
    ledger: LedgerServiceDep,
) -> BalanceAuditResponse:
    """Compare the projected balance with the ledger sum."""
    if await accounts.get_account(account_id) is None:
        raise ResourceNotFoundError(
            MessageCode.ACCOUNT_NOT_FOUND, details={"account_id": str(account_id)}
        )
    audit = await ledger.audit_balance(account_id)
    return APIResponse.success(data=BalanceAuditModel.model_validate(audit))
