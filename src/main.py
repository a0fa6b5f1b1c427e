import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.middleware.logging import logging_middleware
from src.api.core.middleware.security import (
    PayloadSizeMiddleware,
    SecurityHeadersMiddleware,
)
from src.api.router import api_router
from src.database.connection import AsyncSessionLocal, async_engine
from src.modules.payments.provider import RevolutClient
from src.modules.payments.signature import WebhookSignatureVerifier
from src.modules.pricing.cache import PricingCache
from src.utils.logger import setup_logging
from src.utils.settings.app import AppSettings
from src.utils.settings.payments import PaymentSettings

app_settings = AppSettings()
is_production = app_settings.is_production


def _build_webhook_verifier() -> WebhookSignatureVerifier | None:
    settings = PaymentSettings()
    secret = settings.REVOLUT_WEBHOOK_SECRET.get_secret_value()
    if not secret:
        return None
    return WebhookSignatureVerifier(
        secret, tolerance_seconds=settings.WEBHOOK_TOLERANCE_SECONDS
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = setup_logging(is_production, app_settings.LOG_LEVEL)
    app_settings.validate_prod()

    app.state.session_factory = AsyncSessionLocal
    app.state.pricing_cache = PricingCache(
        maxsize=app_settings.PRICING_CACHE_MAX_SIZE,
        ttl=app_settings.PRICING_CACHE_TTL_SECONDS,
    )
    app.state.payment_provider = RevolutClient()
    app.state.webhook_verifier = _build_webhook_verifier()
    if app.state.webhook_verifier is None:
        # Deliveries fail with a configuration error until a secret is set
        logger.warning("webhook_secret_missing")

    logger.info(
        "storyledger_started",
        environment=app_settings.ENVIRONMENT,
        version=app_settings.API_VERSION,
    )

    yield

    app.state.pricing_cache.clear()
    await async_engine.dispose()
    logger.info("storyledger_stopped")


app = FastAPI(
    title="Storyledger Credits API",
    description="Credit ledger, pricing, promotions and credit purchases",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    # Security: Disable docs in production
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
app.add_middleware(
    PayloadSizeMiddleware, max_request_size=app_settings.MAX_REQUEST_SIZE
)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def _serve(reload: bool) -> None:
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=reload, access_log=False
    )


def run_dev_server():
    """Run development server with auto-reload."""
    _serve(reload=True)


def run_prod_server():
    """Run production server."""
    _serve(reload=False)
