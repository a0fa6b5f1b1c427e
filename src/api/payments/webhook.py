"""Payment provider webhook endpoint."""

import orjson
from fastapi import APIRouter, Request, status
from pydantic import ValidationError

from src.api.core.constants import WEBHOOK_SIGNATURE_HEADER, WEBHOOK_TIMESTAMP_HEADER
from src.api.core.dependencies import PaymentOrderServiceDep, WebhookVerifierDep
from src.api.core.exceptions.base import StoryledgerException
from src.api.core.messages import MessageCode
from src.api.payments.schemas import WebhookAck
from src.modules.payments.events import parse_webhook_event
from src.utils.logger import get_logger
from src.utils.settings.payments import PaymentSettings

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["webhooks"])


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    verifier: WebhookVerifierDep,
    service: PaymentOrderServiceDep,
) -> WebhookAck:
    """Verify, parse and apply a provider event.

    Deliveries for unknown orders are acknowledged so the provider stops
    retrying them.
    """
    payload = await request.body()

    if not payload:
        raise StoryledgerException(
            MessageCode.BAD_REQUEST,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Empty webhook payload"},
        )

    max_bytes = PaymentSettings().WEBHOOK_MAX_PAYLOAD_BYTES
    if len(payload) > max_bytes:
        raise StoryledgerException(
            MessageCode.PAYLOAD_TOO_LARGE,
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            details={"description": "Webhook payload too large"},
        )

    if not verifier.verify(
        payload,
        request.headers.get(WEBHOOK_SIGNATURE_HEADER),
        request.headers.get(WEBHOOK_TIMESTAMP_HEADER),
    ):
        logger.warning("webhook_signature_rejected")
        raise StoryledgerException(
            MessageCode.INVALID_WEBHOOK_SIGNATURE, status.HTTP_401_UNAUTHORIZED
        )

    try:
        decoded = orjson.loads(payload)
        if not isinstance(decoded, dict):
            raise ValueError("webhook body must be a JSON object")
        event = parse_webhook_event(decoded)
    except (orjson.JSONDecodeError, ValidationError, ValueError) as e:
        logger.warning("webhook_payload_invalid", error=str(e))
        raise StoryledgerException(
            MessageCode.BAD_REQUEST,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Invalid webhook data"},
        )

    result = await service.process_webhook(event)
    logger.info(
        "webhook_processed",
        provider_event=event.provider_event,
        provider_order_id=event.order_id,
        success=result.success,
        result=result.message,
    )
    return WebhookAck(
        status="success" if result.success else "ignored",
        message=result.message,
    )
