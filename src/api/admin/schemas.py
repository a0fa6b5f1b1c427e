"""Internal catalog and account administration schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse
from src.api.credits.schemas import LedgerEntryModel
from src.api.payments.schemas import CreditPackageModel
from src.api.pricing.schemas import PricingEntryModel


class PricingCreateRequest(BaseModel):
    service_code: str = Field(min_length=1, max_length=64)
    credits: int = Field(ge=0)
    description: str | None = None
    is_active: bool = True


class PricingUpdateRequest(BaseModel):
    credits: int | None = Field(default=None, ge=0)
    description: str | None = None
    is_active: bool | None = None


class PackageCreateRequest(BaseModel):
    key: str = Field(min_length=1, max_length=64)
    credits: int = Field(gt=0)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    popular: bool = False
    best_value: bool = False


class PackageUpdateRequest(BaseModel):
    credits: int | None = Field(default=None, gt=0)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    popular: bool | None = None
    best_value: bool | None = None
    is_active: bool | None = None


class PromotionCodeModel(BaseModel):
    id: UUID
    code: str
    credits: int
    description: str | None
    is_active: bool
    valid_from: datetime | None
    valid_until: datetime | None
    max_redemptions_per_user: int | None
    max_total_redemptions: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PromotionCodeDetailModel(PromotionCodeModel):
    redemption_count: int


class PromotionCreateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    credits: int = Field(gt=0)
    description: str | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    max_redemptions_per_user: int | None = Field(default=1, ge=1)
    max_total_redemptions: int | None = Field(default=None, ge=1)


class PromotionUpdateRequest(BaseModel):
    credits: int | None = Field(default=None, gt=0)
    description: str | None = None
    is_active: bool | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    max_redemptions_per_user: int | None = Field(default=None, ge=1)
    max_total_redemptions: int | None = Field(default=None, ge=1)


class RegisterAccountRequest(BaseModel):
    account_id: UUID
    email: str | None = Field(default=None, max_length=320)
    grant_initial_credits: bool = True


class RegisteredAccountModel(BaseModel):
    account_id: UUID
    email: str | None
    created: bool
    balance: int


class ManualCreditRequest(BaseModel):
    amount: int = Field(gt=0)
    event_kind: Literal["refund", "voucher", "promotion"] = "refund"
    story_id: str | None = Field(default=None, max_length=255)


class BalanceAuditModel(BaseModel):
    account_id: UUID
    projected_balance: int
    ledger_sum: int
    entry_count: int
    consistent: bool

    model_config = {"from_attributes": True}


# Response type aliases
PricingEntryResponse = APIResponse[PricingEntryModel]
PricingEntriesResponse = APIResponse[list[PricingEntryModel]]
PackageResponse = APIResponse[CreditPackageModel]
PackagesResponse = APIResponse[list[CreditPackageModel]]
PromotionCodeResponse = APIResponse[PromotionCodeModel]
PromotionCodeDetailResponse = APIResponse[PromotionCodeDetailModel]
PromotionCodesResponse = APIResponse[list[PromotionCodeModel]]
RegisteredAccountResponse = APIResponse[RegisteredAccountModel]
ManualCreditResponse = APIResponse[LedgerEntryModel]
BalanceAuditResponse = APIResponse[BalanceAuditModel]
