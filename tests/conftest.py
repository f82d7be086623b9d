"""Test fixtures: in-memory DB and a small seeded catalogue."""

import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pricestage.database import Base
from pricestage.models import Listing, MasterProduct, Material, SkuMapping, Variation

FIXED_NOW = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)

_product_ids = itertools.count(5000)


@pytest.fixture()
def db():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    yield session
    session.close()


def add_product(
    db,
    variation_sku: str,
    listing_id: int = 1001,
    *,
    internal_sku: str | None = None,
    weight="5",
    cost_per_gram="1.70",
    sell_price_per_gram="4.20",
    postage="2.00",
    current_price="19.99",
    material_id: str | None = None,
    mapped: bool = True,
) -> Variation:
    """Seed one priced variation: listing, variation, mapping, product, material."""
    internal_sku = internal_sku or f"INT-{variation_sku}"
    material_id = material_id or f"MAT-{variation_sku}"

    if db.get(Listing, listing_id) is None:
        db.add(Listing(listing_id=listing_id, title=f"Listing {listing_id}", has_variations=True))
    if db.get(Material, material_id) is None:
        db.add(Material(
            material_id=material_id,
            name="Sterling silver",
            cost_per_gram=Decimal(cost_per_gram) if cost_per_gram is not None else None,
            sell_price_per_gram=Decimal(sell_price_per_gram) if sell_price_per_gram is not None else None,
        ))
    db.add(MasterProduct(
        internal_sku=internal_sku,
        product_type="ring",
        weight_grams=Decimal(weight) if weight is not None else None,
        material_id=material_id,
        postage_cost=Decimal(postage),
    ))
    if mapped:
        db.add(SkuMapping(variation_sku=variation_sku, internal_sku=internal_sku))
    variation = Variation(
        listing_id=listing_id,
        product_id=next(_product_ids),
        variation_sku=variation_sku,
        price=Decimal(current_price),
    )
    db.add(variation)
    db.commit()
    return variation


@pytest.fixture()
def seeded(db):
    """Two variations costing 8.50 material + 2.00 postage each."""
    add_product(db, "RING-A")
    add_product(db, "RING-B")
    return db


@pytest.fixture()
def clock():
    return lambda: FIXED_NOW


@pytest.fixture()
def make_product(db):
    def _make(variation_sku: str, listing_id: int = 1001, **kwargs) -> Variation:
        return add_product(db, variation_sku, listing_id, **kwargs)
    return _make
