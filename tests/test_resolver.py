"""Tests for SKU -> cost input resolution."""

from decimal import Decimal

import pytest

from pricestage.catalogue import SqlCatalogue
from pricestage.models import Listing, MasterProduct, SkuMapping
from pricestage.pricing.resolver import CostResolver, SkipReason


class TestResolve:
    def test_resolves_full_chain(self, db, make_product):
        make_product("RING-A", weight="5", cost_per_gram="1.70", postage="2.00")
        inputs = CostResolver(SqlCatalogue(db)).resolve("RING-A")
        assert inputs.internal_sku == "INT-RING-A"
        assert inputs.weight_grams == Decimal("5")
        assert inputs.material_cost == Decimal("8.50")
        assert inputs.postage_cost == Decimal("2.00")
        assert inputs.sell_price_per_gram == Decimal("4.20")

    def test_unknown_sku_not_mapped(self, db):
        assert CostResolver(SqlCatalogue(db)).resolve("NOPE") is SkipReason.NOT_MAPPED

    def test_inactive_mapping_ignored(self, db, make_product):
        make_product("RING-A")
        mapping = db.query(SkuMapping).filter_by(variation_sku="RING-A").one()
        mapping.is_active = False
        db.commit()
        assert CostResolver(SqlCatalogue(db)).resolve("RING-A") is SkipReason.NOT_MAPPED

    def test_mapping_to_missing_master_product(self, db):
        db.add(SkuMapping(variation_sku="ORPHAN", internal_sku="GONE"))
        db.commit()
        assert CostResolver(SqlCatalogue(db)).resolve("ORPHAN") is SkipReason.NOT_MAPPED

    def test_missing_weight(self, db, make_product):
        make_product("RING-A", weight=None)
        assert CostResolver(SqlCatalogue(db)).resolve("RING-A") is SkipReason.MISSING_WEIGHT

    def test_zero_weight(self, db, make_product):
        make_product("RING-A", weight="0")
        assert CostResolver(SqlCatalogue(db)).resolve("RING-A") is SkipReason.MISSING_WEIGHT

    def test_missing_material(self, db, make_product):
        make_product("RING-A")
        product = db.get(MasterProduct, "INT-RING-A")
        product.material_id = None
        db.commit()
        result = CostResolver(SqlCatalogue(db)).resolve("RING-A")
        assert result is SkipReason.MISSING_MATERIAL_PRICE

    def test_missing_cost_per_gram(self, db, make_product):
        make_product("RING-A", cost_per_gram=None)
        result = CostResolver(SqlCatalogue(db)).resolve("RING-A")
        assert result is SkipReason.MISSING_MATERIAL_PRICE

    def test_sell_price_basis(self, db, make_product):
        make_product("RING-A", sell_price_per_gram="4.20")
        resolver = CostResolver(SqlCatalogue(db), material_cost_basis="sell_price_per_gram")
        assert resolver.resolve("RING-A").material_cost == Decimal("21.00")

    def test_sell_price_required_by_baseline(self, db, make_product):
        make_product("RING-A", sell_price_per_gram=None)
        resolver = CostResolver(SqlCatalogue(db), require_sell_price=True)
        assert resolver.resolve("RING-A") is SkipReason.MISSING_MATERIAL_PRICE

    def test_unknown_basis_rejected(self, db):
        with pytest.raises(ValueError):
            CostResolver(SqlCatalogue(db), material_cost_basis="retail")

    def test_deterministic(self, db, make_product):
        make_product("RING-A")
        resolver = CostResolver(SqlCatalogue(db))
        assert resolver.resolve("RING-A") == resolver.resolve("RING-A")


class TestResolveListing:
    def test_listing_without_variations_uses_fallback_sku(self, db, make_product):
        make_product("LISTING_2002", listing_id=1001)
        listing = Listing(listing_id=2002, title="Plain band", has_variations=False)
        db.add(listing)
        db.commit()
        inputs = CostResolver(SqlCatalogue(db)).resolve_listing(listing)
        assert inputs.internal_sku == "INT-LISTING_2002"

    def test_listing_sku_preferred(self, db, make_product):
        make_product("BAND-01")
        listing = Listing(listing_id=2003, sku="BAND-01", has_variations=False)
        db.add(listing)
        db.commit()
        inputs = CostResolver(SqlCatalogue(db)).resolve_listing(listing)
        assert inputs.internal_sku == "INT-BAND-01"
