"""Resolve the cost inputs for a marketplace SKU.

marketplace SKU -> active mapping -> master product -> material
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal

from ..catalogue import Catalogue, listing_sku
from ..models import Listing
from .fees import money, to_decimal


class SkipReason(str, enum.Enum):
    NOT_MAPPED = "not_mapped"
    MISSING_WEIGHT = "missing_weight"
    MISSING_MATERIAL_PRICE = "missing_material_price"


@dataclass(frozen=True)
class CostInputs:
    internal_sku: str
    weight_grams: Decimal
    material_id: str
    material_cost: Decimal
    postage_cost: Decimal
    sell_price_per_gram: Decimal | None = None


def _positive(value) -> bool:
    return value is not None and to_decimal(value) > 0


class CostResolver:
    """Pure lookup over a catalogue; same catalogue state, same answer."""

    def __init__(
        self,
        catalogue: Catalogue,
        material_cost_basis: str = "cost_per_gram",
        require_sell_price: bool = False,
    ) -> None:
        if material_cost_basis not in ("cost_per_gram", "sell_price_per_gram"):
            raise ValueError(f"Unknown material cost basis: {material_cost_basis}")
        self.catalogue = catalogue
        self.material_cost_basis = material_cost_basis
        self.require_sell_price = require_sell_price or material_cost_basis == "sell_price_per_gram"

    @classmethod
    def for_policy(cls, catalogue: Catalogue, policy) -> CostResolver:
        return cls(
            catalogue,
            material_cost_basis=policy.material_cost_basis,
            require_sell_price=policy.needs_sell_price,
        )

    def resolve(self, variation_sku: str) -> CostInputs | SkipReason:
        mapping = self.catalogue.active_mapping(variation_sku)
        if mapping is None or not mapping.internal_sku:
            return SkipReason.NOT_MAPPED

        product = self.catalogue.master_product(mapping.internal_sku)
        if product is None:
            # Mapping points at a master SKU that no longer exists
            return SkipReason.NOT_MAPPED
        if not _positive(product.weight_grams):
            return SkipReason.MISSING_WEIGHT

        material = self.catalogue.material(product.material_id) if product.material_id else None
        if material is None:
            return SkipReason.MISSING_MATERIAL_PRICE
        per_gram = getattr(material, self.material_cost_basis)
        if not _positive(per_gram):
            return SkipReason.MISSING_MATERIAL_PRICE
        if self.require_sell_price and not _positive(material.sell_price_per_gram):
            return SkipReason.MISSING_MATERIAL_PRICE

        weight = to_decimal(product.weight_grams)
        return CostInputs(
            internal_sku=product.internal_sku,
            weight_grams=weight,
            material_id=material.material_id,
            material_cost=money(weight * to_decimal(per_gram)),
            postage_cost=money(product.postage_cost or 0),
            sell_price_per_gram=(
                to_decimal(material.sell_price_per_gram)
                if material.sell_price_per_gram is not None else None
            ),
        )

    def resolve_listing(self, listing: Listing) -> CostInputs | SkipReason:
        """Listings sold without variations resolve through their own SKU."""
        return self.resolve(listing_sku(listing))
