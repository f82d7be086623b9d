"""Tests for the Etsy inventory client and listing sync."""

import copy
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pricestage.etsy import EtsyApiError
from pricestage.etsy.client import EtsyClient, build_inventory_update, money_to_decimal, set_sku_price
from pricestage.etsy.sync import ListingSync, save_inventory
from pricestage.models import Listing, Variation

INVENTORY = {
    "products": [
        {
            "product_id": 111,
            "sku": "RING-7",
            "is_deleted": False,
            "property_values": [
                {"property_id": 100, "property_name": "Size", "scale_id": 1,
                 "value_ids": [7], "values": ["7"]},
            ],
            "offerings": [
                {"offering_id": 1, "price": {"amount": 2100, "divisor": 100, "currency_code": "GBP"},
                 "quantity": 3, "is_enabled": True, "is_deleted": False, "readiness_state_id": 55},
            ],
        },
        {
            "product_id": 112,
            "sku": "RING-8",
            "is_deleted": False,
            "property_values": [
                {"property_id": 100, "property_name": "Size", "scale_id": 1,
                 "value_ids": [8], "values": ["8"]},
            ],
            "offerings": [
                {"offering_id": 2, "price": {"amount": 2250, "divisor": 100, "currency_code": "GBP"},
                 "quantity": 1, "is_enabled": True, "is_deleted": False, "readiness_state_id": 55},
            ],
        },
    ],
    "price_on_property": [100],
    "quantity_on_property": [],
    "sku_on_property": [100],
}

LISTING = {
    "listing_id": 4242,
    "title": "Sterling silver band",
    "state": "active",
    "quantity": 4,
    "skus": ["RING-7", "RING-8"],
    "price": {"amount": 2100, "divisor": 100, "currency_code": "GBP"},
    "has_variations": True,
}


@pytest.fixture()
def etsy_client():
    """Create an EtsyClient with a mocked HTTP client."""
    with patch.object(EtsyClient, "__init__", lambda self: None):
        client = EtsyClient.__new__(EtsyClient)
        client._base_url = "https://openapi.etsy.com/v3"
        client._client_id = "keystring"
        client._client_secret = "secret"
        client._access_token = "token"
        client._client = AsyncMock()
        return client


def _mock_response(payload, status_code=200):
    """Create a mock HTTP response with synchronous .json()."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


class TestMoneyToDecimal:
    def test_money_object(self):
        assert money_to_decimal({"amount": 2404, "divisor": 100}) == Decimal("24.04")

    def test_plain_number(self):
        assert money_to_decimal(24.04) == Decimal("24.04")

    def test_missing(self):
        assert money_to_decimal(None) == Decimal("0")
        assert money_to_decimal({"divisor": 100}) == Decimal("0")


class TestInventoryHelpers:
    def test_set_sku_price_only_touches_matching_products(self):
        inventory = copy.deepcopy(INVENTORY)
        assert set_sku_price(inventory, "RING-8", Decimal("24.04")) == 1
        assert inventory["products"][1]["offerings"][0]["price"] == Decimal("24.04")
        assert inventory["products"][0]["offerings"][0]["price"]["amount"] == 2100

    def test_set_sku_price_unknown(self):
        assert set_sku_price(copy.deepcopy(INVENTORY), "NOPE", Decimal("1")) == 0

    def test_build_inventory_update_strips_read_only_fields(self):
        body = build_inventory_update(copy.deepcopy(INVENTORY))
        product = body["products"][0]
        assert "product_id" not in product
        assert "is_deleted" not in product
        assert product["offerings"] == [
            {"price": 21.0, "quantity": 3, "is_enabled": True, "readiness_state_id": 55},
        ]
        assert product["property_values"][0]["values"] == ["7"]
        assert body["price_on_property"] == [100]


class TestEtsyClient:
    def test_headers(self, etsy_client):
        headers = etsy_client._headers()
        assert headers["Authorization"] == "Bearer token"
        assert headers["x-api-key"] == "keystring:secret"

    @pytest.mark.asyncio
    async def test_fetch_current_price(self, etsy_client):
        etsy_client._client.request = AsyncMock(return_value=_mock_response(INVENTORY))
        price = await etsy_client.fetch_variation_current_price(4242, "RING-8")
        assert price == Decimal("22.50")
        method, url = etsy_client._client.request.call_args.args
        assert method == "GET"
        assert url.endswith("/application/listings/4242/inventory")

    @pytest.mark.asyncio
    async def test_update_variation_price(self, etsy_client):
        etsy_client._client.request = AsyncMock(side_effect=[
            _mock_response(copy.deepcopy(INVENTORY)),
            _mock_response({"products": []}),
        ])
        await etsy_client.update_variation_price(4242, "RING-7", Decimal("24.04"))

        put = etsy_client._client.request.call_args_list[1]
        assert put.args[0] == "PUT"
        body = put.kwargs["json"]
        prices = {p["sku"]: p["offerings"][0]["price"] for p in body["products"]}
        assert prices == {"RING-7": 24.04, "RING-8": 22.5}

    @pytest.mark.asyncio
    async def test_update_unknown_sku_does_not_put(self, etsy_client):
        etsy_client._client.request = AsyncMock(return_value=_mock_response(copy.deepcopy(INVENTORY)))
        with pytest.raises(EtsyApiError) as exc:
            await etsy_client.update_variation_price(4242, "NOPE", Decimal("10"))
        assert exc.value.status_code == 404
        assert etsy_client._client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_http_error_status(self, etsy_client):
        etsy_client._client.request = AsyncMock(
            return_value=_mock_response({"error": "Invalid price"}, status_code=400)
        )
        with pytest.raises(EtsyApiError) as exc:
            await etsy_client.get_listing(4242)
        assert exc.value.status_code == 400
        assert "Invalid price" in str(exc.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, etsy_client):
        etsy_client._client.request = AsyncMock(side_effect=httpx.ConnectTimeout("timed out"))
        with pytest.raises(EtsyApiError, match="timed out"):
            await etsy_client.get_listing_inventory(4242)


class TestListingSync:
    def test_save_inventory_upserts(self, db):
        db.add(Listing(listing_id=4242, has_variations=True))
        existing = Variation(listing_id=4242, product_id=111, variation_sku="OLD-SKU", price=Decimal("19.99"))
        db.add(existing)
        db.commit()

        saved = save_inventory(db, 4242, copy.deepcopy(INVENTORY), datetime.now(timezone.utc))
        db.commit()
        assert saved == 2
        variations = db.query(Variation).filter_by(listing_id=4242).order_by(Variation.product_id).all()
        assert [v.variation_sku for v in variations] == ["RING-7", "RING-8"]
        assert variations[0].id == existing.id
        assert variations[0].price == Decimal("21.00")
        assert variations[0].quantity == 3
        assert variations[1].property_values == "Size: 8"

    def test_save_inventory_skips_deleted(self, db):
        db.add(Listing(listing_id=4242, has_variations=True))
        db.commit()
        inventory = copy.deepcopy(INVENTORY)
        inventory["products"][1]["is_deleted"] = True
        assert save_inventory(db, 4242, inventory, None) == 1

    @pytest.mark.asyncio
    async def test_sync_listing(self, db):
        client = AsyncMock()
        client.get_listing = AsyncMock(return_value=LISTING)
        client.get_listing_inventory = AsyncMock(return_value=copy.deepcopy(INVENTORY))

        listing = await ListingSync(client).sync_listing(db, 4242)
        assert listing.title == "Sterling silver band"
        assert listing.sku == "RING-7"
        assert listing.price == Decimal("21.00")
        assert listing.has_variations is True
        assert len(listing.variations) == 2
        assert listing.last_synced_at is not None

    @pytest.mark.asyncio
    async def test_sync_listing_without_variations(self, db):
        client = AsyncMock()
        client.get_listing = AsyncMock(return_value={**LISTING, "has_variations": False, "skus": []})

        listing = await ListingSync(client).sync_listing(db, 4242)
        assert listing.sku is None
        assert listing.variations == []
        client.get_listing_inventory.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sync_error_leaves_catalogue_untouched(self, db):
        client = AsyncMock()
        client.get_listing = AsyncMock(return_value=LISTING)
        client.get_listing_inventory = AsyncMock(side_effect=EtsyApiError("Etsy API returned 500", 500))

        with pytest.raises(EtsyApiError):
            await ListingSync(client).sync_listing(db, 4242)
        assert db.get(Listing, 4242) is None
