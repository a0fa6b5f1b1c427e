"""Tests for the pricing catalog and its cache."""

import pytest
from sqlalchemy import text, update
from sqlalchemy.exc import IntegrityError, OperationalError

from src.api.core.exceptions.base import InvalidRequestError, ResourceNotFoundError
from src.database.models import Account, PricingEntry
from src.modules.pricing.cache import PricingCache
from src.modules.pricing.constants import DEFAULT_PRICING, ServiceCode

from tests.factories import AccountFactory, PricingEntryFactory


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent(catalog):
    created = await catalog.seed_defaults()
    again = await catalog.seed_defaults()

    assert {entry.service_code for entry in created} == {
        code.value for code in DEFAULT_PRICING
    }
    assert again == []
    assert await catalog.get_credits(ServiceCode.SELF_PRINT.value) == 5
    assert await catalog.get_credits(ServiceCode.PRINT_ORDER.value) == 20


@pytest.mark.asyncio
async def test_get_credits_reads_through_cache(catalog, db_session, pricing_cache):
    await PricingEntryFactory.create_async(
        db_session, service_code="ebook_generation", credits=5
    )

    assert await catalog.get_credits("ebook_generation") == 5
    assert "ebook_generation" in pricing_cache

    # A write that bypasses the service is not seen until the entry expires
    await db_session.execute(
        update(PricingEntry)
        .where(PricingEntry.service_code == "ebook_generation")
        .values(credits=9)
    )
    await db_session.commit()

    assert await catalog.get_credits("ebook_generation") == 5


@pytest.mark.asyncio
async def test_update_invalidates_cached_price(catalog, db_session, pricing_cache):
    entry = await PricingEntryFactory.create_async(
        db_session, service_code="audiobook_generation", credits=3
    )
    assert await catalog.get_credits("audiobook_generation") == 3

    await catalog.update_pricing(entry.id, credits=4)

    assert "audiobook_generation" not in pricing_cache
    assert await catalog.get_credits("audiobook_generation") == 4


@pytest.mark.asyncio
async def test_deactivated_entry_has_no_price(catalog, db_session):
    entry = await PricingEntryFactory.create_async(
        db_session, service_code="print_order", credits=20
    )
    assert await catalog.get_credits("print_order") == 20

    await catalog.deactivate_pricing(entry.id)

    assert await catalog.get_credits("print_order") is None
    assert await catalog.get_pricing_by_service_code("print_order") is None
    assert [e.service_code for e in await catalog.get_all_pricing()] == ["print_order"]
    assert await catalog.get_active_pricing() == []


@pytest.mark.asyncio
async def test_get_credits_or_default_uses_fallback_when_missing(catalog):
    assert await catalog.get_credits_or_default("text_edit", 1) == 1


@pytest.mark.asyncio
async def test_get_credits_or_default_survives_database_errors(
    catalog, monkeypatch
):
    async def broken(_service_code):
        raise OperationalError("SELECT", {}, Exception("database is gone"))

    monkeypatch.setattr(catalog, "get_credits", broken)

    assert await catalog.get_credits_or_default("image_edit", 1) == 1


@pytest.mark.asyncio
async def test_failed_lookup_keeps_pending_writes(catalog, db_session, monkeypatch):
    account = AccountFactory.build()
    db_session.add(account)
    await db_session.flush()
    in_savepoint = []

    async def broken(_service_code):
        in_savepoint.append(db_session.in_nested_transaction())
        await db_session.execute(text("SELECT credits FROM missing_pricing"))

    monkeypatch.setattr(catalog, "get_credits", broken)

    assert await catalog.get_credits_or_default("text_edit", 1) == 1
    assert in_savepoint == [True]
    await db_session.commit()
    assert await db_session.get(Account, account.id) is not None


@pytest.mark.asyncio
async def test_calculate_credits_for_features_reports_missing(catalog, db_session):
    await PricingEntryFactory.create_async(
        db_session, service_code="ebook_generation", credits=5
    )
    await PricingEntryFactory.create_async(
        db_session, service_code="audiobook_generation", credits=3
    )

    cost = await catalog.calculate_credits_for_features(
        ["ebook_generation", "audiobook_generation", "hologram"]
    )

    assert cost.total_credits == 8
    assert cost.missing == ["hologram"]
    assert [line.service_code for line in cost.breakdown] == [
        "ebook_generation",
        "audiobook_generation",
    ]


@pytest.mark.asyncio
async def test_create_pricing_validation(catalog, db_session):
    with pytest.raises(InvalidRequestError):
        await catalog.create_pricing("ebook_generation", -1)

    await catalog.create_pricing("ebook_generation", 5)
    with pytest.raises(IntegrityError):
        await catalog.create_pricing("ebook_generation", 6)


@pytest.mark.asyncio
async def test_unknown_pricing_id_is_not_found(catalog):
    from uuid import uuid4

    with pytest.raises(ResourceNotFoundError):
        await catalog.get_pricing_by_id(uuid4())


def test_cache_expires_entries():
    cache = PricingCache(maxsize=2, ttl=0.01)
    cache.set("ebook_generation", 5)
    assert cache.get("ebook_generation") == 5

    import time

    time.sleep(0.02)
    assert cache.get("ebook_generation") is None


def test_cache_respects_max_size():
    cache = PricingCache(maxsize=2, ttl=60)
    for code, credits in (("a", 1), ("b", 2), ("c", 3)):
        cache.set(code, credits)

    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0
