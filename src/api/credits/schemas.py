"""Credits API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse, Paginated
from src.modules.pricing.constants import ServiceCode


class BalanceModel(BaseModel):
    account_id: UUID
    balance: int


class LedgerEntryModel(BaseModel):
    id: UUID
    amount: int
    event_kind: str
    story_id: str | None
    purchase_id: UUID | None
    balance_after: int
    created_at: datetime

    model_config = {"from_attributes": True}


class CanAffordRequest(BaseModel):
    """Either a raw amount or a list of catalog service codes to price."""

    amount: int | None = Field(default=None, ge=0)
    service_codes: list[str] = Field(default_factory=list, max_length=20)


class CanAffordModel(BaseModel):
    can_afford: bool
    required: int
    balance: int
    missing_service_codes: list[str] = []


class DeductRequest(BaseModel):
    service_code: ServiceCode
    story_id: str = Field(min_length=1, max_length=255)


class DeductionModel(BaseModel):
    entry: LedgerEntryModel | None
    credits_charged: int
    balance: int


# Response type aliases
BalanceResponse = APIResponse[BalanceModel]
LedgerHistoryResponse = APIResponse[Paginated[LedgerEntryModel]]
CanAffordResponse = APIResponse[CanAffordModel]
DeductionResponse = APIResponse[DeductionModel]
