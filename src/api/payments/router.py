"""Credit purchase router."""

from typing import Annotated

from fastapi import APIRouter, Header

from src.api.core.constants import PAYMENT_HISTORY_LIMIT
from src.api.core.dependencies import (
    CreditPackageServiceDep,
    CurrentAccountDep,
    PaymentOrderServiceDep,
)
from src.api.core.exceptions.base import ResourceNotFoundError
from src.api.core.messages import APIResponse, MessageCode
from src.modules.payments.service import OrderItem
from src.api.payments.schemas import (
    CreatedOrderModel,
    CreatedOrderResponse,
    CreateOrderRequest,
    CreditPackageModel,
    CreditPackagesResponse,
    PaymentHistoryResponse,
    PaymentMethodModel,
    PaymentMethodsResponse,
    PaymentOrderModel,
    PaymentOrderResponse,
)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/packages", response_model=CreditPackagesResponse)
async def list_packages(
    account: CurrentAccountDep,
    packages: CreditPackageServiceDep,
) -> CreditPackagesResponse:
    """Active credit packages, cheapest first."""
    active = await packages.get_active_packages()
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=[CreditPackageModel.model_validate(package) for package in active],
    )


@router.post("/orders", response_model=CreatedOrderResponse)
async def create_order(
    body: CreateOrderRequest,
    account: CurrentAccountDep,
    service: PaymentOrderServiceDep,
    idempotency_key: Annotated[
        str | None, Header(alias="Idempotency-Key", max_length=255)
    ] = None,
) -> CreatedOrderResponse:
    """Open a provider order for the basket and return its checkout link."""
    order, remote = await service.create_order(
        account.account_id,
        [OrderItem(item.package_key, item.quantity) for item in body.items],
        idempotency_key=idempotency_key,
    )
    return APIResponse.success(
        message_code=MessageCode.ORDER_CREATED,
        data=CreatedOrderModel(
            order=PaymentOrderModel.model_validate(order),
            checkout_url=remote.checkout_url,
        ),
    )


@router.get("/orders/{token}", response_model=PaymentOrderResponse)
async def get_order(
    token: str,
    account: CurrentAccountDep,
    service: PaymentOrderServiceDep,
) -> PaymentOrderResponse:
    """Order status by checkout token. Other accounts' orders look missing."""
    order = await service.get_order_by_token(token)
    if order is None or order.account_id != account.account_id:
        raise ResourceNotFoundError(MessageCode.ORDER_NOT_FOUND)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=PaymentOrderModel.model_validate(order),
    )


@router.get("/history", response_model=PaymentHistoryResponse)
async def get_payment_history(
    account: CurrentAccountDep,
    service: PaymentOrderServiceDep,
) -> PaymentHistoryResponse:
    orders = await service.get_payment_history(
        account.account_id, limit=PAYMENT_HISTORY_LIMIT
    )
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=[PaymentOrderModel.model_validate(order) for order in orders],
    )


@router.get("/methods", response_model=PaymentMethodsResponse)
async def get_payment_methods(
    account: CurrentAccountDep,
    service: PaymentOrderServiceDep,
) -> PaymentMethodsResponse:
    """Cards remembered from completed orders."""
    methods = await service.get_payment_methods(account.account_id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=[PaymentMethodModel.model_validate(method) for method in methods],
    )
