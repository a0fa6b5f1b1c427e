"""Payment order lifecycle: creation, webhook processing, credit settlement."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions.base import ConfigurationError, InvalidRequestError
from src.api.core.messages import MessageCode
from src.core.base import BaseService
from src.database.models import (
    CreditEventKind,
    PaymentEvent,
    PaymentEventType,
    PaymentMethod,
    PaymentOrder,
    PaymentOrderStatus,
)
from src.database.models.base import utcnow
from src.modules.credits.ledger import LedgerService
from src.modules.payments.events import (
    CardDetails,
    DisputeEvent,
    OrderAuthorisedEvent,
    OrderCancelledEvent,
    OrderCompletedEvent,
    OrderFailedEvent,
    WebhookEvent,
)
from src.modules.payments.provider import PaymentProviderClient, ProviderOrder
from src.modules.pricing.packages import CreditPackageService

PROVIDER_NAME = "revolut"
MAX_ITEM_QUANTITY = 100
ORDER_NOT_FOUND = "order not found"

_CENT = Decimal("0.01")


@dataclass
class OrderItem:
    package_key: str
    quantity: int = 1


@dataclass
class OrderLine:
    package_key: str
    quantity: int
    credits: int
    unit_price: Decimal
    total_price: Decimal


@dataclass
class OrderTotals:
    total_credits: int = 0
    total_price: Decimal = Decimal("0.00")
    lines: list[OrderLine] = field(default_factory=list)

    @property
    def amount_minor(self) -> int:
        return int((self.total_price * 100).quantize(Decimal("1"), ROUND_HALF_UP))


@dataclass
class WebhookResult:
    success: bool
    message: str
    order_id: UUID | None = None
    status: str | None = None


class PaymentOrderService(BaseService):
    def __init__(
        self,
        db: AsyncSession,
        provider: PaymentProviderClient | None = None,
        currency: str = "EUR",
    ):
        super().__init__(db)
        self.provider = provider
        self.currency = currency
        self.ledger = LedgerService(db)
        self.packages = CreditPackageService(db)

    async def calculate_order_total(self, items: list[OrderItem]) -> OrderTotals:
        """Price a basket of packages against the active package catalog.

        Raises:
            InvalidRequestError: empty basket, bad quantity or unknown package.
        """
        if not items:
            raise InvalidRequestError("At least one credit package is required")

        totals = OrderTotals()
        for item in items:
            if item.quantity < 1 or item.quantity > MAX_ITEM_QUANTITY:
                raise InvalidRequestError(
                    f"Invalid quantity {item.quantity} for package {item.package_key}"
                )
            package = await self.packages.get_package_by_key(item.package_key)
            if package is None:
                raise InvalidRequestError(
                    f"Invalid package: {item.package_key}",
                    details={"package_key": item.package_key},
                    message_code=MessageCode.PACKAGE_NOT_FOUND,
                )

            unit_price = Decimal(package.price).quantize(_CENT)
            line_price = unit_price * item.quantity
            totals.lines.append(
                OrderLine(
                    package_key=package.key,
                    quantity=item.quantity,
                    credits=package.credits,
                    unit_price=unit_price,
                    total_price=line_price,
                )
            )
            totals.total_credits += package.credits * item.quantity
            totals.total_price += line_price
        return totals

    async def create_order(
        self,
        account_id: UUID,
        items: list[OrderItem],
        idempotency_key: str | None = None,
    ) -> tuple[PaymentOrder, ProviderOrder]:
        """Create the remote order first, then persist it locally.

        A provider failure propagates before anything is written.
        """
        if self.provider is None:
            raise ConfigurationError("Payment provider client is not configured")

        totals = await self.calculate_order_total(items)
        merchant_order_ref = f"storyledger-{uuid4().hex}"
        remote = await self.provider.create_order(
            amount=totals.amount_minor,
            currency=self.currency,
            description=f"Storyledger credits purchase - {totals.total_credits} credits",
            merchant_order_ref=merchant_order_ref,
            idempotency_key=idempotency_key,
        )

        # A replayed idempotency key yields the same remote order
        existing = await self.get_order_by_provider_id(remote.id)
        if existing is not None:
            self.logger.info(
                "order_creation_replayed",
                order_id=str(existing.id),
                provider_order_id=remote.id,
            )
            return existing, remote

        order = PaymentOrder(
            account_id=account_id,
            amount=totals.amount_minor,
            currency=self.currency,
            status=PaymentOrderStatus.PENDING.value,
            provider=PROVIDER_NAME,
            provider_order_id=remote.id,
            provider_public_id=remote.token,
            credit_bundle={
                "credits": totals.total_credits,
                "price": str(totals.total_price),
            },
            order_metadata={
                "merchant_order_ref": merchant_order_ref,
                "idempotency_key": idempotency_key,
                "items": [
                    {"package_key": line.package_key, "quantity": line.quantity}
                    for line in totals.lines
                ],
            },
        )
        try:
            self.db.add(order)
            await self.db.flush()
            self.db.add(
                PaymentEvent(
                    order_id=order.id,
                    event_type=PaymentEventType.ORDER_CREATED.value,
                    data={
                        "provider_order": remote.model_dump(mode="json"),
                        "total_credits": totals.total_credits,
                        "total_price": str(totals.total_price),
                    },
                )
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            self.logger.error(
                "order_persist_failed",
                provider_order_id=remote.id,
                account_id=str(account_id),
            )
            raise

        self.logger.info(
            "order_created",
            order_id=str(order.id),
            account_id=str(account_id),
            provider_order_id=remote.id,
            credits=totals.total_credits,
            amount=totals.amount_minor,
        )
        return order, remote

    async def get_order_by_provider_id(
        self, provider_order_id: str
    ) -> PaymentOrder | None:
        result = await self.db.execute(
            select(PaymentOrder).where(
                PaymentOrder.provider_order_id == provider_order_id
            )
        )
        return result.scalar_one_or_none()

    async def get_order_by_token(self, token: str) -> PaymentOrder | None:
        result = await self.db.execute(
            select(PaymentOrder).where(PaymentOrder.provider_public_id == token)
        )
        return result.scalar_one_or_none()

    async def get_payment_history(
        self, account_id: UUID, limit: int = 20
    ) -> list[PaymentOrder]:
        result = await self.db.execute(
            select(PaymentOrder)
            .where(PaymentOrder.account_id == account_id)
            .order_by(PaymentOrder.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_order_events(self, order_id: UUID) -> list[PaymentEvent]:
        result = await self.db.execute(
            select(PaymentEvent)
            .where(PaymentEvent.order_id == order_id)
            .order_by(PaymentEvent.created_at)
        )
        return list(result.scalars().all())

    async def process_webhook(self, event: WebhookEvent) -> WebhookResult:
        """Apply a verified webhook event to its order.

        Unknown orders are reported, not raised, so the endpoint can still
        acknowledge the delivery. Redelivery of any event is harmless.
        """
        order = await self.get_order_by_provider_id(event.order_id)
        if order is None:
            self.logger.warning(
                "webhook_order_not_found",
                provider_order_id=event.order_id,
                provider_event=event.provider_event,
            )
            return WebhookResult(success=False, message=ORDER_NOT_FOUND)

        self.db.add(
            PaymentEvent(
                order_id=order.id,
                event_type=PaymentEventType.WEBHOOK_RECEIVED.value,
                data=event.payload,
            )
        )
        await self.db.commit()

        if isinstance(event, OrderCompletedEvent):
            granted = await self.handle_order_completed(order, event)
            message = "credits added" if granted else "order already completed"
        elif isinstance(event, OrderAuthorisedEvent):
            changed = await self._transition(
                order,
                PaymentOrderStatus.PROCESSING,
                from_statuses=(PaymentOrderStatus.PENDING,),
                event_type=PaymentEventType.PAYMENT_PROCESSING,
                data=event.payload,
            )
            message = "order processing" if changed else "status unchanged"
        elif isinstance(event, OrderCancelledEvent):
            changed = await self._transition(
                order,
                PaymentOrderStatus.CANCELLED,
                from_statuses=(
                    PaymentOrderStatus.PENDING,
                    PaymentOrderStatus.PROCESSING,
                ),
                event_type=PaymentEventType.PAYMENT_CANCELLED,
                data=event.payload,
            )
            message = "order cancelled" if changed else "status unchanged"
        elif isinstance(event, OrderFailedEvent):
            changed = await self._transition(
                order,
                PaymentOrderStatus.FAILED,
                from_statuses=(
                    PaymentOrderStatus.PENDING,
                    PaymentOrderStatus.PROCESSING,
                ),
                event_type=PaymentEventType.PAYMENT_FAILED,
                data=event.payload,
            )
            message = "order failed" if changed else "status unchanged"
        elif isinstance(event, DisputeEvent):
            self.logger.warning(
                "payment_dispute_opened",
                order_id=str(order.id),
                account_id=str(order.account_id),
                provider_event=event.provider_event,
            )
            self.db.add(
                PaymentEvent(
                    order_id=order.id,
                    event_type=PaymentEventType.DISPUTE_OPENED.value,
                    data=event.payload,
                )
            )
            await self.db.commit()
            message = "dispute recorded"
        else:
            self.logger.info(
                "webhook_event_unhandled",
                order_id=str(order.id),
                provider_event=event.provider_event,
            )
            message = "event ignored"

        return WebhookResult(
            success=True, message=message, order_id=order.id, status=order.status
        )

    async def handle_order_completed(
        self, order: PaymentOrder, event: OrderCompletedEvent | None = None
    ) -> bool:
        """Mark the order completed and grant its credits exactly once.

        The status update only matches while the order is not completed, and
        the ledger credit rides in the same transaction, so duplicate or
        concurrent deliveries grant nothing after the first.

        Returns:
            True if this call completed the order, False if it already was.
        """
        order_id = order.id
        if order.status == PaymentOrderStatus.COMPLETED:
            self.logger.info("order_already_completed", order_id=str(order.id))
            return False

        previous_status = order.status
        try:
            result = await self.db.execute(
                update(PaymentOrder)
                .where(
                    PaymentOrder.id == order.id,
                    PaymentOrder.status != PaymentOrderStatus.COMPLETED.value,
                )
                .values(
                    status=PaymentOrderStatus.COMPLETED.value, updated_at=utcnow()
                )
                .returning(PaymentOrder.id)
                .execution_options(synchronize_session=False)
            )
            if result.scalar_one_or_none() is None:
                # Nothing written, end the transaction without expiring state
                await self.db.commit()
                self.logger.info("order_completion_lost_race", order_id=str(order.id))
                return False

            entry = await self.ledger.add_credits(
                order.account_id,
                order.credits,
                CreditEventKind.CREDIT_PURCHASE,
                purchase_id=order.id,
                commit=False,
            )
            self.db.add_all(
                [
                    PaymentEvent(
                        order_id=order.id,
                        event_type=PaymentEventType.PAYMENT_COMPLETED.value,
                        data=event.payload if event else None,
                    ),
                    PaymentEvent(
                        order_id=order.id,
                        event_type=PaymentEventType.CREDITS_ADDED.value,
                        data={
                            "credits": order.credits,
                            "ledger_entry_id": str(entry.id),
                            "balance_after": entry.balance_after,
                        },
                    ),
                ]
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        if previous_status != PaymentOrderStatus.PENDING:
            self.logger.warning(
                "order_completed_from_non_pending",
                order_id=str(order.id),
                previous_status=previous_status,
            )
        self.logger.info(
            "order_completed",
            order_id=str(order.id),
            account_id=str(order.account_id),
            credits=order.credits,
            balance_after=entry.balance_after,
        )

        if event is not None and event.payment_method and event.payment_method.is_card:
            try:
                await self.save_payment_method(order.account_id, event.payment_method)
            except SQLAlchemyError as e:
                self.logger.warning(
                    "payment_method_save_failed",
                    order_id=str(order_id),
                    error=str(e),
                )
                await self.db.rollback()
                await self.db.refresh(order)
        return True

    async def save_payment_method(
        self, account_id: UUID, card: CardDetails
    ) -> PaymentMethod:
        """Remember card metadata for display, one row per account and last4."""
        result = await self.db.execute(
            select(PaymentMethod).where(
                PaymentMethod.account_id == account_id,
                PaymentMethod.provider == PROVIDER_NAME,
                PaymentMethod.last4 == card.last4,
            )
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing

        method = PaymentMethod(
            account_id=account_id,
            provider=PROVIDER_NAME,
            provider_ref=f"{PROVIDER_NAME}-saved-method",
            brand=card.brand,
            last4=card.last4,
            exp_month=card.exp_month,
            exp_year=card.exp_year,
            is_default=False,
        )
        self.db.add(method)
        await self.db.commit()
        return method

    async def get_payment_methods(self, account_id: UUID) -> list[PaymentMethod]:
        result = await self.db.execute(
            select(PaymentMethod)
            .where(PaymentMethod.account_id == account_id)
            .order_by(PaymentMethod.created_at.desc())
        )
        return list(result.scalars().all())

    async def _transition(
        self,
        order: PaymentOrder,
        new_status: PaymentOrderStatus,
        from_statuses: tuple[PaymentOrderStatus, ...],
        event_type: PaymentEventType,
        data: dict | None = None,
    ) -> bool:
        """Conditional status change; terminal orders are never moved."""
        try:
            result = await self.db.execute(
                update(PaymentOrder)
                .where(
                    PaymentOrder.id == order.id,
                    PaymentOrder.status.in_([s.value for s in from_statuses]),
                )
                .values(status=new_status.value, updated_at=utcnow())
                .returning(PaymentOrder.id)
                .execution_options(synchronize_session=False)
            )
            if result.scalar_one_or_none() is None:
                await self.db.commit()
                self.logger.info(
                    "order_transition_skipped",
                    order_id=str(order.id),
                    current_status=order.status,
                    requested_status=new_status.value,
                )
                return False

            self.db.add(
                PaymentEvent(
                    order_id=order.id, event_type=event_type.value, data=data
                )
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        self.logger.info(
            "order_status_changed",
            order_id=str(order.id),
            status=new_status.value,
        )
        return True
