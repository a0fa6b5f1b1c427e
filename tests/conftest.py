"""Global test configuration and fixtures for the Storyledger credits API."""

import os

os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("REVOLUT_WEBHOOK_SECRET", "test-webhook-secret")

import time
from collections.abc import AsyncGenerator
from itertools import count
from typing import Callable

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.api.core.constants import (
    ACCOUNT_ID_HEADER,
    ADMIN_KEY_HEADER,
    WEBHOOK_SIGNATURE_HEADER,
    WEBHOOK_TIMESTAMP_HEADER,
)
from src.database.connection import build_async_engine, build_session_factory
from src.database.models import Account, Base, CreditEventKind
from src.modules.credits.ledger import LedgerService
from src.modules.payments.provider import ProviderOrder
from src.modules.payments.signature import WebhookSignatureVerifier, compute_signature
from src.modules.pricing.cache import PricingCache
from src.modules.pricing.catalog import PricingCatalogService
from src.modules.pricing.packages import CreditPackageService

from tests.factories import AccountFactory

ADMIN_KEY = os.environ["ADMIN_API_KEY"]
WEBHOOK_SECRET = "test-webhook-secret"


class FakePaymentProvider:
    """In-memory stand-in for the provider's order API."""

    def __init__(self):
        self.calls: list[dict] = []
        self.error: Exception | None = None
        self._by_idempotency_key: dict[str, ProviderOrder] = {}
        self._ids = count(1)

    async def create_order(
        self,
        amount: int,
        currency: str,
        description: str,
        merchant_order_ref: str,
        idempotency_key: str | None = None,
    ) -> ProviderOrder:
        self.calls.append(
            {
                "amount": amount,
                "currency": currency,
                "description": description,
                "merchant_order_ref": merchant_order_ref,
                "idempotency_key": idempotency_key,
            }
        )
        if self.error is not None:
            raise self.error
        if idempotency_key and idempotency_key in self._by_idempotency_key:
            return self._by_idempotency_key[idempotency_key]

        n = next(self._ids)
        order = ProviderOrder(
            id=f"fake-order-{n}",
            token=f"fake-token-{n}",
            state="pending",
            amount=amount,
            currency=currency,
            checkout_url=f"https://checkout.example.com/fake-token-{n}",
        )
        if idempotency_key:
            self._by_idempotency_key[idempotency_key] = order
        return order


@pytest.fixture
def account_factory():
    return AccountFactory


@pytest_asyncio.fixture
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database per test, created from the models."""
    engine = build_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'credits.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(async_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and asserting. Writes must be committed before the
    app under test can see them."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def pricing_cache() -> PricingCache:
    return PricingCache()


@pytest.fixture
def catalog(db_session, pricing_cache) -> PricingCatalogService:
    return PricingCatalogService(db_session, pricing_cache)


@pytest.fixture
def ledger(db_session) -> LedgerService:
    return LedgerService(db_session)


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest_asyncio.fixture
async def seeded_catalog(db_session, catalog):
    """Default prices and credit packages."""
    await catalog.seed_defaults()
    await CreditPackageService(db_session).seed_defaults()
    return catalog


@pytest.fixture
def create_account(db_session: AsyncSession, ledger: LedgerService):
    """Create an account, optionally funded through the ledger."""

    async def _create(balance: int = 0, **kwargs) -> Account:
        account = await AccountFactory.create_async(db_session, **kwargs)
        if balance > 0:
            await ledger.add_credits(account.id, balance, CreditEventKind.REFUND)
        return account

    return _create


@pytest_asyncio.fixture
async def test_account(create_account) -> Account:
    return await create_account()


@pytest.fixture
def webhook_verifier() -> WebhookSignatureVerifier:
    return WebhookSignatureVerifier(WEBHOOK_SECRET)


@pytest.fixture
def sign_webhook() -> Callable[..., dict[str, str]]:
    """Headers signing ``body`` the way the provider does."""

    def _sign(body: bytes, timestamp: int | None = None, secret: str = WEBHOOK_SECRET):
        ts = str(timestamp if timestamp is not None else int(time.time() * 1000))
        return {
            WEBHOOK_SIGNATURE_HEADER: compute_signature(secret, ts, body.decode()),
            WEBHOOK_TIMESTAMP_HEADER: ts,
            "Content-Type": "application/json",
        }

    return _sign


@pytest_asyncio.fixture
async def app(
    session_factory, pricing_cache, payment_provider, webhook_verifier
) -> AsyncGenerator[FastAPI, None]:
    """FastAPI application wired to the per-test database and fakes."""
    from src.main import app

    async with LifespanManager(app):
        app.state.session_factory = session_factory
        app.state.pricing_cache = pricing_cache
        app.state.payment_provider = payment_provider
        app.state.webhook_verifier = webhook_verifier
        yield app


# HTTP Client Fixtures
@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client without identity headers."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-storyledger-api",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def account_client(
    app: FastAPI, test_account: Account
) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client acting as ``test_account``."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-storyledger-api",
        headers={ACCOUNT_ID_HEADER: str(test_account.id)},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client carrying the admin key."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-storyledger-api",
        headers={ADMIN_KEY_HEADER: ADMIN_KEY},
    ) as ac:
        yield ac


@pytest.fixture
def client_factory(app: FastAPI):
    """Factory for creating HTTP clients acting as a given account."""

    def create_client_for_account(account: Account) -> AsyncClient:
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test-storyledger-api",
            headers={ACCOUNT_ID_HEADER: str(account.id)},
        )

    return create_client_for_account

