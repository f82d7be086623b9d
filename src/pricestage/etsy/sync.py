"""Pull one listing's state and inventory from Etsy into the local catalogue."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from ..models import Listing, Variation
from .client import EtsyClient, money_to_decimal

logger = logging.getLogger(__name__)


def _property_label(product: dict[str, Any]) -> str:
    parts = []
    for pv in product.get("property_values") or []:
        values = ", ".join(str(v) for v in pv.get("values") or [])
        parts.append(f"{pv.get('property_name', '')}: {values}")
    return " / ".join(parts)


def save_listing(db: Session, data: dict[str, Any], now: datetime) -> Listing:
    """Upsert a listing row from a getListing payload."""
    listing_id = int(data["listing_id"])
    listing = db.get(Listing, listing_id)
    if listing is None:
        listing = Listing(listing_id=listing_id)
        db.add(listing)

    skus = data.get("skus") or []
    listing.title = data.get("title") or ""
    listing.sku = skus[0] if skus else listing.sku
    listing.price = money_to_decimal(data.get("price"))
    listing.quantity = int(data.get("quantity") or 0)
    listing.state = data.get("state") or "active"
    listing.has_variations = bool(data.get("has_variations"))
    listing.last_synced_at = now
    return listing


def save_inventory(db: Session, listing_id: int, inventory: dict[str, Any], now: datetime) -> int:
    """Upsert variation rows from a getListingInventory payload.

    Returns the number of products saved. Products are matched on
    (listing_id, product_id); the first offering carries price and quantity.
    """
    existing = {
        v.product_id: v
        for v in db.query(Variation).filter(Variation.listing_id == listing_id).all()
    }
    saved = 0
    for product in inventory.get("products") or []:
        if product.get("is_deleted"):
            continue
        product_id = product.get("product_id")
        variation = existing.get(product_id)
        if variation is None:
            variation = Variation(listing_id=listing_id, product_id=product_id)
            db.add(variation)
            existing[product_id] = variation

        offerings = product.get("offerings") or [{}]
        offering = offerings[0]
        variation.variation_sku = product.get("sku") or ""
        variation.price = money_to_decimal(offering.get("price"))
        variation.quantity = int(offering.get("quantity") or 0)
        variation.property_values = _property_label(product)
        variation.last_synced_at = now
        saved += 1
    return saved


class ListingSync:
    """Refresh listings and their variations from Etsy on demand."""

    def __init__(self, client: EtsyClient) -> None:
        self.client = client

    async def sync_listing(self, db: Session, listing_id: int) -> Listing:
        now = datetime.now(timezone.utc)
        data = await self.client.get_listing(listing_id)
        try:
            listing = save_listing(db, data, now)
            db.flush()
            saved = 0
            if listing.has_variations:
                inventory = await self.client.get_listing_inventory(listing_id)
                saved = save_inventory(db, listing_id, inventory, now)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(listing)
        logger.info("Listing sync: %s (%d variations)", listing_id, saved)
        return listing
