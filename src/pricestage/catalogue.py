"""Read access to the seller's catalogue: SKU mappings, master products, materials.

Writes belong to the sync and catalogue-maintenance paths; pricing only reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy.orm import Session

from .models import Listing, MasterProduct, Material, SkuMapping, Variation

MARKETPLACE = "etsy"


@dataclass(frozen=True)
class PriceableItem:
    listing_id: int
    variation_sku: str
    current_price: Decimal
    title: str = ""


def listing_sku(listing: Listing) -> str:
    """SKU used for a listing sold without variations."""
    return listing.sku or f"LISTING_{listing.listing_id}"


class Catalogue(Protocol):
    def active_mapping(self, variation_sku: str) -> SkuMapping | None: ...

    def master_product(self, internal_sku: str) -> MasterProduct | None: ...

    def material(self, material_id: str) -> Material | None: ...

    def priceable_items(self, skus: list[str] | None = None) -> list[PriceableItem]: ...


class SqlCatalogue:
    def __init__(self, db: Session, marketplace: str = MARKETPLACE) -> None:
        self.db = db
        self.marketplace = marketplace

    def active_mapping(self, variation_sku: str) -> SkuMapping | None:
        return (
            self.db.query(SkuMapping)
            .filter(
                SkuMapping.marketplace == self.marketplace,
                SkuMapping.variation_sku == variation_sku,
                SkuMapping.is_active.is_(True),
                SkuMapping.internal_sku.isnot(None),
            )
            .first()
        )

    def master_product(self, internal_sku: str) -> MasterProduct | None:
        return self.db.get(MasterProduct, internal_sku)

    def material(self, material_id: str) -> Material | None:
        return self.db.get(Material, material_id)

    def priceable_items(self, skus: list[str] | None = None) -> list[PriceableItem]:
        """Every variation with a SKU, then every listing sold without variations."""
        items: list[PriceableItem] = []

        query = (
            self.db.query(Variation, Listing.title)
            .join(Listing, Listing.listing_id == Variation.listing_id)
            .filter(Variation.variation_sku.isnot(None), Variation.variation_sku != "")
        )
        if skus is not None:
            query = query.filter(Variation.variation_sku.in_(skus))
        for variation, title in query.order_by(Variation.listing_id, Variation.variation_sku):
            items.append(PriceableItem(
                listing_id=variation.listing_id,
                variation_sku=variation.variation_sku,
                current_price=variation.price or Decimal("0"),
                title=title or "",
            ))

        listings = (
            self.db.query(Listing)
            .filter(Listing.has_variations.is_(False))
            .order_by(Listing.listing_id)
            .all()
        )
        for listing in listings:
            sku = listing_sku(listing)
            if skus is not None and sku not in skus:
                continue
            items.append(PriceableItem(
                listing_id=listing.listing_id,
                variation_sku=sku,
                current_price=listing.price or Decimal("0"),
                title=listing.title,
            ))
        return items

    # --- Mapping maintenance ---

    def list_mappings(self) -> list[SkuMapping]:
        return (
            self.db.query(SkuMapping)
            .filter(SkuMapping.marketplace == self.marketplace)
            .order_by(SkuMapping.updated_at.desc(), SkuMapping.variation_sku)
            .all()
        )

    def save_mapping(self, variation_sku: str, internal_sku: str, is_active: bool = True) -> SkuMapping:
        """Create or overwrite the single mapping for a variation SKU."""
        mapping = (
            self.db.query(SkuMapping)
            .filter(
                SkuMapping.marketplace == self.marketplace,
                SkuMapping.variation_sku == variation_sku,
            )
            .first()
        )
        if mapping is None:
            mapping = SkuMapping(marketplace=self.marketplace, variation_sku=variation_sku)
            self.db.add(mapping)
        mapping.internal_sku = internal_sku
        mapping.is_active = is_active
        self.db.commit()
        self.db.refresh(mapping)
        return mapping

    def deactivate_mapping(self, variation_sku: str) -> SkuMapping | None:
        mapping = (
            self.db.query(SkuMapping)
            .filter(
                SkuMapping.marketplace == self.marketplace,
                SkuMapping.variation_sku == variation_sku,
            )
            .first()
        )
        if mapping is None:
            return None
        mapping.is_active = False
        self.db.commit()
        self.db.refresh(mapping)
        return mapping

    def unmapped_variations(self) -> list[PriceableItem]:
        return [
            item for item in self.priceable_items()
            if self.active_mapping(item.variation_sku) is None
        ]

    # --- Materials and master products ---

    def list_materials(self) -> list[Material]:
        return self.db.query(Material).order_by(Material.material_id).all()

    def save_material(
        self,
        material_id: str,
        name: str,
        cost_per_gram: Decimal | None = None,
        sell_price_per_gram: Decimal | None = None,
    ) -> Material:
        """Create or replace a material's prices."""
        material = self.db.get(Material, material_id)
        if material is None:
            material = Material(material_id=material_id)
            self.db.add(material)
        material.name = name
        material.cost_per_gram = cost_per_gram
        material.sell_price_per_gram = sell_price_per_gram
        self.db.commit()
        self.db.refresh(material)
        return material

    def list_products(self) -> list[MasterProduct]:
        return self.db.query(MasterProduct).order_by(MasterProduct.internal_sku).all()

    def save_product(
        self,
        internal_sku: str,
        *,
        product_type: str = "",
        length: Decimal | None = None,
        weight_grams: Decimal | None = None,
        material_id: str | None = None,
        postage_cost: Decimal = Decimal("0"),
    ) -> MasterProduct:
        """Create or replace a master product; the next calculation picks it up."""
        product = self.db.get(MasterProduct, internal_sku)
        if product is None:
            product = MasterProduct(internal_sku=internal_sku)
            self.db.add(product)
        product.product_type = product_type
        product.length = length
        product.weight_grams = weight_grams
        product.material_id = material_id
        product.postage_cost = postage_cost
        self.db.commit()
        self.db.refresh(product)
        return product
