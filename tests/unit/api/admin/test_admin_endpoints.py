"""Tests for internal administration routes."""

import uuid

import pytest
from fastapi import status
from httpx import AsyncClient

from src.database.models import CreditEventKind


# Pricing


@pytest.mark.asyncio
async def test_seed_pricing_is_idempotent(app, admin_client: AsyncClient):
    first = await admin_client.post("/v1/admin/pricing/seed")
    second = await admin_client.post("/v1/admin/pricing/seed")

    assert first.status_code == status.HTTP_200_OK
    assert len(first.json()["data"]) == 7
    assert second.json()["data"] == []


@pytest.mark.asyncio
async def test_pricing_crud(app, admin_client: AsyncClient, public_client: AsyncClient):
    created = await admin_client.post(
        "/v1/admin/pricing",
        json={"service_code": "colouring_book", "credits": 4, "description": "Colouring"},
    )
    assert created.status_code == status.HTTP_201_CREATED
    pricing_id = created.json()["data"]["id"]

    assert (await public_client.get("/v1/pricing")).json()["data"][0]["credits"] == 4
    updated = await admin_client.patch(
        f"/v1/admin/pricing/{pricing_id}", json={"credits": 6}
    )
    assert updated.json()["data"]["credits"] == 6

    deactivated = await admin_client.delete(f"/v1/admin/pricing/{pricing_id}")
    assert deactivated.json()["data"]["is_active"] is False
    assert (await public_client.get("/v1/pricing")).json()["data"] == []

    listed = await admin_client.get("/v1/admin/pricing")
    assert [e["service_code"] for e in listed.json()["data"]] == ["colouring_book"]


@pytest.mark.asyncio
async def test_duplicate_pricing_conflicts(app, admin_client: AsyncClient):
    body = {"service_code": "ebook_generation", "credits": 5}
    await admin_client.post("/v1/admin/pricing", json=body)

    response = await admin_client.post("/v1/admin/pricing", json=body)

    assert response.status_code == status.HTTP_409_CONFLICT


@pytest.mark.asyncio
async def test_update_missing_pricing(app, admin_client: AsyncClient):
    response = await admin_client.patch(
        f"/v1/admin/pricing/{uuid.uuid4()}", json={"credits": 1}
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message_code"] == "PRICING_NOT_FOUND"


# Packages


@pytest.mark.asyncio
async def test_package_crud(app, admin_client: AsyncClient):
    created = await admin_client.post(
        "/v1/admin/packages",
        json={"key": "credits50", "credits": 50, "price": "39.00"},
    )
    assert created.status_code == status.HTTP_201_CREATED
    package_id = created.json()["data"]["id"]

    updated = await admin_client.patch(
        f"/v1/admin/packages/{package_id}", json={"price": "35.00", "popular": True}
    )
    assert updated.json()["data"]["popular"] is True
    assert float(updated.json()["data"]["price"]) == 35.0

    deactivated = await admin_client.delete(f"/v1/admin/packages/{package_id}")
    assert deactivated.status_code == status.HTTP_200_OK

    seeded = await admin_client.post("/v1/admin/packages/seed")
    assert len(seeded.json()["data"]) == 4
    listed = await admin_client.get("/v1/admin/packages")
    assert len(listed.json()["data"]) == 5


@pytest.mark.asyncio
async def test_package_price_must_be_positive(app, admin_client: AsyncClient):
    response = await admin_client.post(
        "/v1/admin/packages", json={"key": "free", "credits": 5, "price": "0"}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# Promotion codes


@pytest.mark.asyncio
async def test_promotion_code_lifecycle(
    app, admin_client: AsyncClient, account_client: AsyncClient
):
    created = await admin_client.post(
        "/v1/admin/promotions",
        json={"code": "spring25", "credits": 25, "max_total_redemptions": 100},
    )
    assert created.status_code == status.HTTP_201_CREATED
    promotion = created.json()["data"]
    assert promotion["code"] == "SPRING25"
    assert promotion["max_redemptions_per_user"] == 1

    await account_client.post("/v1/promotions/redeem", json={"code": "SPRING25"})

    detail = await admin_client.get(f"/v1/admin/promotions/{promotion['id']}")
    assert detail.json()["data"]["redemption_count"] == 1

    updated = await admin_client.patch(
        f"/v1/admin/promotions/{promotion['id']}", json={"description": "Spring sale"}
    )
    assert updated.json()["data"]["description"] == "Spring sale"
    assert updated.json()["data"]["credits"] == 25

    await admin_client.delete(f"/v1/admin/promotions/{promotion['id']}")
    active = await admin_client.get("/v1/admin/promotions?include_inactive=false")
    everything = await admin_client.get("/v1/admin/promotions")
    assert active.json()["data"] == []
    assert len(everything.json()["data"]) == 1


@pytest.mark.asyncio
async def test_promotion_account_cap_can_be_lifted(
    app, admin_client: AsyncClient, account_client: AsyncClient
):
    unlimited = await admin_client.post(
        "/v1/admin/promotions",
        json={"code": "OPEN", "credits": 1, "max_redemptions_per_user": None},
    )
    capped = await admin_client.post(
        "/v1/admin/promotions", json={"code": "CAPPED", "credits": 1}
    )
    assert unlimited.json()["data"]["max_redemptions_per_user"] is None

    for _ in range(2):
        redeemed = await account_client.post(
            "/v1/promotions/redeem", json={"code": "OPEN"}
        )
        assert redeemed.status_code == status.HTTP_200_OK

    lifted = await admin_client.patch(
        f"/v1/admin/promotions/{capped.json()['data']['id']}",
        json={"max_redemptions_per_user": None},
    )

    assert lifted.json()["data"]["max_redemptions_per_user"] is None
    assert lifted.json()["data"]["credits"] == 1


@pytest.mark.asyncio
async def test_promotion_window_must_be_ordered(app, admin_client: AsyncClient):
    response = await admin_client.post(
        "/v1/admin/promotions",
        json={
            "code": "BACKWARDS",
            "credits": 5,
            "valid_from": "2026-12-01T00:00:00Z",
            "valid_until": "2026-11-01T00:00:00Z",
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_missing_promotion(app, admin_client: AsyncClient):
    response = await admin_client.get(f"/v1/admin/promotions/{uuid.uuid4()}")

    assert response.status_code == status.HTTP_404_NOT_FOUND


# Accounts


@pytest.mark.asyncio
async def test_register_account_grants_initial_credits_once(
    app, seeded_catalog, admin_client: AsyncClient, ledger
):
    account_id = uuid.uuid4()
    body = {"account_id": str(account_id), "email": "author@example.com"}

    first = await admin_client.post("/v1/admin/accounts", json=body)
    second = await admin_client.post("/v1/admin/accounts", json=body)

    assert first.status_code == status.HTTP_201_CREATED
    assert first.json()["message_code"] == "ACCOUNT_REGISTERED"
    assert first.json()["data"]["balance"] == 5
    assert second.status_code == status.HTTP_200_OK
    assert second.json()["data"]["created"] is False
    assert second.json()["data"]["balance"] == 5

    entries, total = await ledger.get_history(account_id)
    assert total == 1
    assert entries[0].event_kind == CreditEventKind.INITIAL_CREDIT.value


@pytest.mark.asyncio
async def test_register_account_without_credits(app, admin_client: AsyncClient):
    response = await admin_client.post(
        "/v1/admin/accounts",
        json={"account_id": str(uuid.uuid4()), "grant_initial_credits": False},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["balance"] == 0


@pytest.mark.asyncio
async def test_manual_credit_and_audit(app, admin_client: AsyncClient, test_account):
    granted = await admin_client.post(
        f"/v1/admin/accounts/{test_account.id}/credits",
        json={"amount": 7, "event_kind": "refund", "story_id": "story-3"},
    )

    assert granted.status_code == status.HTTP_201_CREATED
    assert granted.json()["data"]["amount"] == 7
    assert granted.json()["data"]["event_kind"] == "refund"
    assert granted.json()["data"]["balance_after"] == 7

    audit = await admin_client.get(f"/v1/admin/accounts/{test_account.id}/audit")
    assert audit.json()["data"] == {
        "account_id": str(test_account.id),
        "projected_balance": 7,
        "ledger_sum": 7,
        "entry_count": 1,
        "consistent": True,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"amount": 0}, {"amount": 5, "event_kind": "credit_purchase"}],
)
async def test_manual_credit_validation(
    app, admin_client: AsyncClient, test_account, body
):
    response = await admin_client.post(
        f"/v1/admin/accounts/{test_account.id}/credits", json=body
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_manual_credit_for_unknown_account(app, admin_client: AsyncClient):
    response = await admin_client.post(
        f"/v1/admin/accounts/{uuid.uuid4()}/credits", json={"amount": 5}
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
