import hmac
from typing import Annotated, AsyncGenerator
from uuid import UUID

import structlog
from fastapi import Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.constants import ACCOUNT_ID_HEADER, ADMIN_KEY_HEADER
from src.api.core.exceptions.base import ResourceNotFoundError, StoryledgerException
from src.api.core.messages import MessageCode
from src.core.context import AccountContext
from src.database.models import Account
from src.modules.accounts.service import AccountService
from src.modules.credits.ledger import LedgerService
from src.modules.edits.service import EditCreditService
from src.modules.payments.provider import PaymentProviderClient
from src.modules.payments.service import PaymentOrderService
from src.modules.payments.signature import WebhookSignatureVerifier
from src.modules.pricing.cache import PricingCache
from src.modules.pricing.catalog import PricingCatalogService
from src.modules.pricing.packages import CreditPackageService
from src.modules.promotions.service import PromotionService
from src.utils.settings.app import AppSettings
from src.utils.settings.payments import PaymentSettings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_pricing_cache(request: Request) -> PricingCache:
    """Process-wide pricing cache created in the app lifespan."""
    return request.app.state.pricing_cache


def get_payment_provider(request: Request) -> PaymentProviderClient:
    return request.app.state.payment_provider


async def get_pricing_catalog_service(
    db: AsyncSessionDep,
    cache: Annotated[PricingCache, Depends(get_pricing_cache)],
) -> PricingCatalogService:
    """Get pricing catalog service with database session and shared cache."""
    return PricingCatalogService(db, cache)


PricingCatalogDep = Annotated[
    PricingCatalogService, Depends(get_pricing_catalog_service)
]


async def get_ledger_service(db: AsyncSessionDep) -> LedgerService:
    """Get ledger service with database session."""
    return LedgerService(db)


async def get_credit_package_service(db: AsyncSessionDep) -> CreditPackageService:
    """Get credit package service with database session."""
    return CreditPackageService(db)


async def get_account_service(
    db: AsyncSessionDep, catalog: PricingCatalogDep
) -> AccountService:
    """Get account service with database session."""
    return AccountService(db, catalog)


async def get_edit_credit_service(
    db: AsyncSessionDep, catalog: PricingCatalogDep
) -> EditCreditService:
    """Get edit credit service with database session."""
    return EditCreditService(db, catalog)


async def get_promotion_service(db: AsyncSessionDep) -> PromotionService:
    """Get promotion service with database session."""
    return PromotionService(db)


async def get_payment_order_service(
    db: AsyncSessionDep,
    provider: Annotated[PaymentProviderClient, Depends(get_payment_provider)],
) -> PaymentOrderService:
    """Get payment order service with database session and provider client."""
    return PaymentOrderService(db, provider, currency=PaymentSettings().PAYMENT_CURRENCY)


def get_webhook_verifier(request: Request) -> WebhookSignatureVerifier:
    """Build the verifier from settings. A missing secret raises ConfigurationError."""
    verifier = getattr(request.app.state, "webhook_verifier", None)
    if verifier is not None:
        return verifier
    settings = PaymentSettings()
    return WebhookSignatureVerifier(
        settings.REVOLUT_WEBHOOK_SECRET.get_secret_value(),
        tolerance_seconds=settings.WEBHOOK_TOLERANCE_SECONDS,
    )


async def get_current_account(
    db: AsyncSessionDep,
    account_id: Annotated[str | None, Header(alias=ACCOUNT_ID_HEADER)] = None,
) -> AccountContext:
    """Resolve the account forwarded by the session gateway.

    The gateway has already authenticated the caller; this only checks the
    header is present, well formed and names a registered account.
    """
    if not account_id:
        raise StoryledgerException(MessageCode.AUTH_REQUIRED, status.HTTP_401_UNAUTHORIZED)
    try:
        parsed = UUID(account_id)
    except ValueError:
        raise StoryledgerException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            details={"description": f"Malformed {ACCOUNT_ID_HEADER} header"},
        )

    if await db.get(Account, parsed) is None:
        raise ResourceNotFoundError(
            MessageCode.ACCOUNT_NOT_FOUND, details={"account_id": str(parsed)}
        )

    structlog.contextvars.bind_contextvars(account_id=str(parsed))
    return AccountContext(account_id=parsed)


async def require_admin(
    admin_key: Annotated[str | None, Header(alias=ADMIN_KEY_HEADER)] = None,
) -> None:
    """Guard for internal catalog routes."""
    expected = AppSettings().ADMIN_API_KEY.get_secret_value()
    if not expected or not admin_key:
        raise StoryledgerException(MessageCode.FORBIDDEN, status.HTTP_403_FORBIDDEN)
    if not hmac.compare_digest(admin_key.encode(), expected.encode()):
        raise StoryledgerException(MessageCode.FORBIDDEN, status.HTTP_403_FORBIDDEN)


CurrentAccountDep = Annotated[AccountContext, Depends(get_current_account)]
LedgerServiceDep = Annotated[LedgerService, Depends(get_ledger_service)]
CreditPackageServiceDep = Annotated[
    CreditPackageService, Depends(get_credit_package_service)
]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
EditCreditServiceDep = Annotated[EditCreditService, Depends(get_edit_credit_service)]
PromotionServiceDep = Annotated[PromotionService, Depends(get_promotion_service)]
PaymentOrderServiceDep = Annotated[
    PaymentOrderService, Depends(get_payment_order_service)
]
WebhookVerifierDep = Annotated[WebhookSignatureVerifier, Depends(get_webhook_verifier)]
AdminDep = Depends(require_admin)
