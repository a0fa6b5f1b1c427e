"""Payment provider settings configuration."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    REVOLUT_API_URL: str = "https://sandbox-merchant.revolut.com"
    REVOLUT_API_SECRET_KEY: SecretStr = SecretStr("")
    REVOLUT_API_VERSION: str = "2024-09-01"
    # Signing secret for inbound webhooks, empty means not configured
    REVOLUT_WEBHOOK_SECRET: SecretStr = SecretStr("")

    PAYMENT_CURRENCY: str = "EUR"
    PAYMENT_PROVIDER_TIMEOUT_SECONDS: int = 30
    PAYMENT_RETURN_URL: str = "https://storyledger.app/credits/complete"

    WEBHOOK_TOLERANCE_SECONDS: int = 300
    WEBHOOK_MAX_PAYLOAD_BYTES: int = 1024 * 1024  # 1MB
