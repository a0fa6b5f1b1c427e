"""Tests for the public price list."""

import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_price_list_is_public(app, seeded_catalog, public_client: AsyncClient):
    response = await public_client.get("/v1/pricing")

    assert response.status_code == status.HTTP_200_OK
    prices = {e["service_code"]: e["credits"] for e in response.json()["data"]}
    assert prices["ebook_generation"] == 5
    assert prices["print_order"] == 20
    assert prices["text_edit"] == 1
    assert len(prices) == 7


@pytest.mark.asyncio
async def test_deactivated_prices_are_hidden(
    app, seeded_catalog, public_client: AsyncClient
):
    entry = await seeded_catalog.get_pricing_by_service_code("print_order")
    await seeded_catalog.deactivate_pricing(entry.id)

    response = await public_client.get("/v1/pricing")

    codes = [e["service_code"] for e in response.json()["data"]]
    assert "print_order" not in codes
    assert len(codes) == 6
