"""Payment API schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse
from src.modules.payments.service import MAX_ITEM_QUANTITY


class CreditPackageModel(BaseModel):
    id: UUID
    key: str
    credits: int
    price: Decimal
    popular: bool
    best_value: bool

    model_config = {"from_attributes": True}


class OrderItemRequest(BaseModel):
    package_key: str = Field(min_length=1, max_length=64)
    quantity: int = Field(default=1, ge=1, le=MAX_ITEM_QUANTITY)


class CreateOrderRequest(BaseModel):
    items: list[OrderItemRequest] = Field(min_length=1, max_length=10)


class PaymentOrderModel(BaseModel):
    id: UUID
    status: str
    amount: int
    currency: str
    credits: int
    token: str = Field(validation_alias="provider_public_id")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}


class CreatedOrderModel(BaseModel):
    order: PaymentOrderModel
    checkout_url: str | None


class PaymentMethodModel(BaseModel):
    id: UUID
    brand: str | None
    last4: str
    exp_month: int | None
    exp_year: int | None
    is_default: bool

    model_config = {"from_attributes": True}


class WebhookAck(BaseModel):
    status: str
    message: str


# Response type aliases
CreditPackagesResponse = APIResponse[list[CreditPackageModel]]
CreatedOrderResponse = APIResponse[CreatedOrderModel]
PaymentOrderResponse = APIResponse[PaymentOrderModel]
PaymentHistoryResponse = APIResponse[list[PaymentOrderModel]]
PaymentMethodsResponse = APIResponse[list[PaymentMethodModel]]
