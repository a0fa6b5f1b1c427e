"""Tests for balance, history, affordability and feature deduction endpoints."""

import pytest
from fastapi import status
from httpx import AsyncClient

from src.database.models import CreditEventKind


@pytest.mark.asyncio
async def test_new_account_balance_is_zero(app, account_client: AsyncClient, test_account):
    response = await account_client.get("/v1/credits/balance")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data == {"account_id": str(test_account.id), "balance": 0}


@pytest.mark.asyncio
async def test_history_is_paginated_newest_first(
    app, account_client: AsyncClient, test_account, ledger
):
    for amount in (1, 2, 3):
        await ledger.add_credits(test_account.id, amount, CreditEventKind.REFUND)

    response = await account_client.get("/v1/credits/history?limit=2")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert [item["amount"] for item in data["items"]] == [3, 2]
    assert data["items"][0]["balance_after"] == 6
    assert data["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}

    response = await account_client.get("/v1/credits/history?limit=2&offset=2")
    data = response.json()["data"]
    assert [item["amount"] for item in data["items"]] == [1]
    assert data["pagination"]["has_more"] is False


@pytest.mark.asyncio
async def test_history_limit_is_bounded(app, account_client: AsyncClient):
    response = await account_client.get("/v1/credits/history?limit=1000")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_can_afford_amount(app, create_account, client_factory):
    account = await create_account(balance=5)

    async with client_factory(account) as client:
        enough = await client.post("/v1/credits/can-afford", json={"amount": 5})
        short = await client.post("/v1/credits/can-afford", json={"amount": 6})

    assert enough.json()["data"]["can_afford"] is True
    assert short.json()["data"] == {
        "can_afford": False,
        "required": 6,
        "balance": 5,
        "missing_service_codes": [],
    }


@pytest.mark.asyncio
async def test_can_afford_features(app, seeded_catalog, create_account, client_factory):
    account = await create_account(balance=8)

    async with client_factory(account) as client:
        response = await client.post(
            "/v1/credits/can-afford",
            json={"service_codes": ["ebook_generation", "audiobook_generation"]},
        )
        missing = await client.post(
            "/v1/credits/can-afford",
            json={"service_codes": ["ebook_generation", "hologram"]},
        )

    assert response.json()["data"]["required"] == 8
    assert response.json()["data"]["can_afford"] is True
    assert missing.json()["data"]["can_afford"] is False
    assert missing.json()["data"]["missing_service_codes"] == ["hologram"]


@pytest.mark.asyncio
async def test_can_afford_requires_amount_or_codes(app, account_client: AsyncClient):
    response = await account_client.post("/v1/credits/can-afford", json={})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_deduct_feature(app, seeded_catalog, create_account, client_factory):
    account = await create_account(balance=12)

    async with client_factory(account) as client:
        response = await client.post(
            "/v1/credits/deduct",
            json={"service_code": "ebook_generation", "story_id": "story-42"},
        )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["message_code"] == "CREDITS_DEDUCTED"
    assert body["data"]["credits_charged"] == 5
    assert body["data"]["balance"] == 7
    assert body["data"]["entry"]["amount"] == -5
    assert body["data"]["entry"]["event_kind"] == "ebook_generation"
    assert body["data"]["entry"]["story_id"] == "story-42"


@pytest.mark.asyncio
async def test_deduct_with_insufficient_credits(
    app, seeded_catalog, create_account, client_factory, ledger
):
    account = await create_account(balance=19)

    async with client_factory(account) as client:
        response = await client.post(
            "/v1/credits/deduct",
            json={"service_code": "print_order", "story_id": "story-1"},
        )

    assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED
    body = response.json()
    assert body["message_code"] == "INSUFFICIENT_CREDITS"
    assert body["details"] == {"required": 20, "available": 19}
    assert await ledger.get_balance(account.id) == 19


@pytest.mark.asyncio
@pytest.mark.parametrize("service_code", ["text_edit", "initial_author_credits"])
async def test_deduct_rejects_non_story_features(
    app, seeded_catalog, account_client: AsyncClient, service_code
):
    response = await account_client.post(
        "/v1/credits/deduct", json={"service_code": service_code, "story_id": "s"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_deduct_without_active_price(app, account_client: AsyncClient):
    response = await account_client.post(
        "/v1/credits/deduct",
        json={"service_code": "self_print", "story_id": "story-1"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message_code"] == "PRICING_NOT_FOUND"


@pytest.mark.asyncio
async def test_deduct_free_feature_writes_no_entry(
    app, create_account, client_factory, catalog, ledger
):
    await catalog.create_pricing("self_print", 0)
    account = await create_account(balance=3)

    async with client_factory(account) as client:
        response = await client.post(
            "/v1/credits/deduct",
            json={"service_code": "self_print", "story_id": "story-1"},
        )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"] == {"entry": None, "credits_charged": 0, "balance": 3}
    _, total = await ledger.get_history(account.id)
    assert total == 1
