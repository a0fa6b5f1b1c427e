"""Typed webhook events.

Provider payloads are validated once at the edge and turned into one variant
of :data:`WebhookEvent`; the order service dispatches on ``kind``.

Only ``event`` and ``order_id`` can reject a delivery. Informational fields
that fail validation are logged and dropped so a completed payment still
settles.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    model_validator,
)

from src.utils.logger import get_logger

logger = get_logger(__name__)


def _none_when_malformed(
    value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
) -> Any:
    try:
        return handler(value)
    except ValidationError as e:
        logger.warning(
            "webhook_field_dropped",
            field=info.field_name,
            errors=[error["msg"] for error in e.errors()],
        )
        return None


T = TypeVar("T")
Lenient = Annotated[T, WrapValidator(_none_when_malformed)]


class CardDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Lenient[str | None] = None
    brand: Lenient[str | None] = None
    last4: Lenient[Annotated[str, Field(max_length=4)] | None] = None
    exp_month: Lenient[int | None] = None
    exp_year: Lenient[int | None] = None

    @property
    def is_card(self) -> bool:
        return (self.type or "card").lower() == "card" and bool(self.last4)


class WebhookPayload(BaseModel):
    """Raw provider envelope: ``{event, order_id, timestamp, state?, amount?, payment_method?}``."""

    model_config = ConfigDict(extra="allow")

    event: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
    timestamp: Lenient[datetime | None] = None
    state: Lenient[str | None] = None
    amount: Lenient[int | dict | None] = None
    payment_method: Lenient[CardDetails | None] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_nested_data(cls, values: Any) -> Any:
        # Older deliveries nest the order under "data"
        if isinstance(values, dict) and "order_id" not in values:
            data = values.get("data")
            if isinstance(data, dict) and data.get("id"):
                values = {
                    **values,
                    "order_id": data["id"],
                    "state": data.get("state"),
                    "payment_method": data.get("payment_method"),
                }
        return values


class _WebhookEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_event: str
    order_id: str
    timestamp: datetime | None = None
    state: str | None = None
    payload: dict = Field(default_factory=dict, repr=False)


class OrderCompletedEvent(_WebhookEventBase):
    kind: Literal["order_completed"] = "order_completed"
    payment_method: CardDetails | None = None


class OrderAuthorisedEvent(_WebhookEventBase):
    kind: Literal["order_authorised"] = "order_authorised"


class OrderCancelledEvent(_WebhookEventBase):
    kind: Literal["order_cancelled"] = "order_cancelled"


class OrderFailedEvent(_WebhookEventBase):
    kind: Literal["order_failed"] = "order_failed"


class DisputeEvent(_WebhookEventBase):
    kind: Literal["dispute"] = "dispute"


class UnknownEvent(_WebhookEventBase):
    kind: Literal["unknown"] = "unknown"


WebhookEvent = Annotated[
    Union[
        OrderCompletedEvent,
        OrderAuthorisedEvent,
        OrderCancelledEvent,
        OrderFailedEvent,
        DisputeEvent,
        UnknownEvent,
    ],
    Field(discriminator="kind"),
]

_webhook_event_adapter: TypeAdapter[WebhookEvent] = TypeAdapter(WebhookEvent)

EVENT_KINDS: dict[str, str] = {
    "ORDER_COMPLETED": "order_completed",
    "ORDER_AUTHORISED": "order_authorised",
    "ORDER_AUTHORIZED": "order_authorised",
    "ORDER_CANCELLED": "order_cancelled",
    "ORDER_FAILED": "order_failed",
    "ORDER_PAYMENT_FAILED": "order_failed",
    "ORDER_PAYMENT_DECLINED": "order_failed",
    "PAYMENT_FAILED": "order_failed",
}


def classify_event(provider_event: str) -> str:
    """Map a provider event name (``ORDER_COMPLETED`` or ``order.completed``) to a kind."""
    name = provider_event.strip().upper().replace(".", "_")
    if name in EVENT_KINDS:
        return EVENT_KINDS[name]
    if name.startswith("DISPUTE_"):
        return "dispute"
    return "unknown"


def parse_webhook_event(payload: dict) -> WebhookEvent:
    """Validate a decoded webhook body.

    Raises:
        pydantic.ValidationError: ``event`` or ``order_id`` missing or malformed.
            Other malformed fields are dropped instead.
    """
    envelope = WebhookPayload.model_validate(payload)
    kind = classify_event(envelope.event)

    fields: dict[str, Any] = {
        "kind": kind,
        "provider_event": envelope.event,
        "order_id": envelope.order_id,
        "timestamp": envelope.timestamp,
        "state": envelope.state,
        "payload": payload,
    }
    if kind == "order_completed" and envelope.payment_method is not None:
        fields["payment_method"] = envelope.payment_method
    return _webhook_event_adapter.validate_python(fields)
