from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "https://storyledger.app",
        "https://www.storyledger.app",
    ]

    # Shared secret for the internal admin routes, empty disables them
    ADMIN_API_KEY: SecretStr = SecretStr("")

    # Pricing catalog cache
    PRICING_CACHE_TTL_SECONDS: int = 300
    PRICING_CACHE_MAX_SIZE: int = 256

    MAX_REQUEST_SIZE: int = 1 * 1024 * 1024  # 1MB

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.is_production:
            if not self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must be set in production")
            if not self.ADMIN_API_KEY.get_secret_value():
                raise ValueError("ADMIN_API_KEY must be set in production")
