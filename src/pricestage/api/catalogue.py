"""Catalogue maintenance (materials, master products, SKU mappings) and on-demand listing sync."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..catalogue import SqlCatalogue
from ..database import get_db
from ..etsy import EtsyApiError
from ..etsy.sync import ListingSync
from ..schemas import (
    ListingResponse,
    MasterProductResponse,
    MasterProductUpdate,
    MaterialResponse,
    MaterialUpdate,
    SkuMappingResponse,
    SkuMappingUpdate,
    UnmappedVariationResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/catalogue", tags=["catalogue"])


@router.get("/materials", response_model=list[MaterialResponse])
def list_materials(db: Session = Depends(get_db)):
    return SqlCatalogue(db).list_materials()


@router.put("/materials/{material_id}", response_model=MaterialResponse)
def save_material(material_id: str, body: MaterialUpdate, db: Session = Depends(get_db)):
    name = body.name.strip()
    if not name:
        raise HTTPException(400, "name must not be empty")
    material = SqlCatalogue(db).save_material(
        material_id, name, body.cost_per_gram, body.sell_price_per_gram
    )
    logger.info("Material saved: %s (cost/g=%s)", material_id, material.cost_per_gram)
    return material


@router.get("/products", response_model=list[MasterProductResponse])
def list_products(db: Session = Depends(get_db)):
    return SqlCatalogue(db).list_products()


@router.put("/products/{internal_sku}", response_model=MasterProductResponse)
def save_product(internal_sku: str, body: MasterProductUpdate, db: Session = Depends(get_db)):
    catalogue = SqlCatalogue(db)
    if body.material_id and catalogue.material(body.material_id) is None:
        raise HTTPException(400, f"Unknown material {body.material_id}")
    product = catalogue.save_product(
        internal_sku,
        product_type=body.product_type.strip(),
        length=body.length,
        weight_grams=body.weight_grams,
        material_id=body.material_id or None,
        postage_cost=body.postage_cost,
    )
    logger.info("Product saved: %s (%sg of %s)", internal_sku, product.weight_grams, product.material_id)
    return product


@router.get("/mappings", response_model=list[SkuMappingResponse])
def list_mappings(db: Session = Depends(get_db)):
    return SqlCatalogue(db).list_mappings()


@router.put("/mappings/{variation_sku}", response_model=SkuMappingResponse)
def save_mapping(variation_sku: str, body: SkuMappingUpdate, db: Session = Depends(get_db)):
    internal_sku = body.internal_sku.strip()
    if not internal_sku:
        raise HTTPException(400, "internal_sku must not be empty")
    mapping = SqlCatalogue(db).save_mapping(variation_sku, internal_sku, body.is_active)
    logger.info("Mapping saved: %s -> %s (active=%s)", variation_sku, internal_sku, mapping.is_active)
    return mapping


@router.delete("/mappings/{variation_sku}", response_model=SkuMappingResponse)
def deactivate_mapping(variation_sku: str, db: Session = Depends(get_db)):
    mapping = SqlCatalogue(db).deactivate_mapping(variation_sku)
    if mapping is None:
        raise HTTPException(404, f"No mapping for {variation_sku}")
    logger.info("Mapping deactivated: %s", variation_sku)
    return mapping


@router.get("/unmapped", response_model=list[UnmappedVariationResponse])
def unmapped_variations(db: Session = Depends(get_db)):
    return [
        UnmappedVariationResponse(
            listing_id=item.listing_id,
            variation_sku=item.variation_sku,
            price=item.current_price,
        )
        for item in SqlCatalogue(db).unmapped_variations()
    ]


@router.post("/listings/{listing_id}/sync", response_model=ListingResponse)
async def sync_listing(listing_id: int, db: Session = Depends(get_db)):
    from ..main import app_state

    client = app_state.get("etsy")
    if not client:
        raise HTTPException(503, "Etsy API not configured")

    try:
        listing = await ListingSync(client).sync_listing(db, listing_id)
    except EtsyApiError as e:
        raise HTTPException(502, f"Etsy API error: {e}")

    return ListingResponse(
        listing_id=listing.listing_id,
        title=listing.title,
        sku=listing.sku,
        price=listing.price,
        quantity=listing.quantity,
        state=listing.state,
        has_variations=listing.has_variations,
        last_synced_at=listing.last_synced_at,
        variation_count=len(listing.variations),
    )
