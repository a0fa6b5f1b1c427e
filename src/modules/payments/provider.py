"""Client for the payment provider's merchant API."""

import asyncio
from typing import Protocol

import aiohttp
from pydantic import BaseModel, ConfigDict, ValidationError

from src.api.core.exceptions.base import ConfigurationError, PaymentProviderError
from src.utils.logger import get_logger
from src.utils.settings.payments import PaymentSettings

logger = get_logger(__name__)


class ProviderOrder(BaseModel):
    """Remote order as returned by the provider."""

    model_config = ConfigDict(extra="ignore")

    id: str
    token: str
    state: str = "pending"
    amount: int | None = None
    currency: str | None = None
    checkout_url: str | None = None


class PaymentProviderClient(Protocol):
    async def create_order(
        self,
        amount: int,
        currency: str,
        description: str,
        merchant_order_ref: str,
        idempotency_key: str | None = None,
    ) -> ProviderOrder: ...


class RevolutClient:
    """Creates orders through the Revolut Merchant API."""

    def __init__(self, settings: PaymentSettings | None = None):
        settings = settings or PaymentSettings()
        self.url = settings.REVOLUT_API_URL.rstrip("/")
        self.api_version = settings.REVOLUT_API_VERSION
        self.timeout = settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS
        self.redirect_url = settings.PAYMENT_RETURN_URL
        self._secret_key = settings.REVOLUT_API_SECRET_KEY.get_secret_value()

    def _headers(self, idempotency_key: str | None) -> dict[str, str]:
        if not self._secret_key:
            raise ConfigurationError("Payment provider API key is not configured")
        headers = {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
            "Revolut-Api-Version": self.api_version,
        }
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    async def create_order(
        self,
        amount: int,
        currency: str,
        description: str,
        merchant_order_ref: str,
        idempotency_key: str | None = None,
    ) -> ProviderOrder:
        """Create a remote order. ``amount`` is in minor units.

        Raises:
            PaymentProviderError: network failure, timeout, non-2xx answer or
                an unexpected response body.
        """
        body = {
            "amount": amount,
            "currency": currency,
            "description": description,
            "merchant_order_data": {"reference": merchant_order_ref},
            "redirect_url": self.redirect_url,
        }
        headers = self._headers(idempotency_key)

        async with aiohttp.ClientSession() as session:
            try:
                async with session.post(
                    f"{self.url}/api/orders",
                    json=body,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        logger.error(
                            "provider_order_rejected",
                            status=response.status,
                            body=error_text[:500],
                        )
                        raise PaymentProviderError(
                            "Payment provider rejected the order",
                            provider_status=response.status,
                        )
                    data = await response.json()
            except asyncio.TimeoutError:
                logger.error("provider_order_timeout", timeout=self.timeout)
                raise PaymentProviderError("Payment provider timed out")
            except aiohttp.ClientError as e:
                logger.error("provider_request_failed", error=str(e))
                raise PaymentProviderError("Payment provider unavailable")
            except ValueError as e:
                logger.error("provider_response_not_json", error=str(e))
                raise PaymentProviderError("Malformed payment provider response")

        try:
            order = ProviderOrder.model_validate(data)
        except ValidationError as e:
            logger.error("provider_response_malformed", error=str(e))
            raise PaymentProviderError("Malformed payment provider response")

        logger.info(
            "provider_order_created",
            provider_order_id=order.id,
            amount=amount,
            currency=currency,
        )
        return order
