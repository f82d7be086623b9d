from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# --- Staged prices ---

class StagedPriceResponse(BaseModel):
    id: int
    listing_id: int
    variation_sku: str
    internal_sku: str | None
    current_price: Decimal
    weight_grams: Decimal | None
    material_id: str | None
    material_cost: Decimal
    postage_cost: Decimal
    margin_modifier: Decimal
    base_calculated_price: Decimal
    calculated_price: Decimal
    transaction_fee: Decimal
    payment_fee: Decimal
    ad_fee: Decimal
    listing_fee: Decimal
    total_fees: Decimal
    profit: Decimal
    profit_margin_pct: Decimal
    status: str
    calculated_at: datetime | None
    approved_at: datetime | None
    pushed_at: datetime | None
    last_push_error: str = ""
    last_push_attempt_at: datetime | None = None

    model_config = {"from_attributes": True}


class StagedPriceListResponse(BaseModel):
    items: list[StagedPriceResponse]
    total: int


class StagingEventResponse(BaseModel):
    id: int
    record_id: int
    variation_sku: str
    event_type: str
    old_status: str | None
    new_status: str | None
    old_price: Decimal | None
    new_price: Decimal | None
    message: str
    recorded_at: datetime

    model_config = {"from_attributes": True}


class StagingStatsResponse(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    pushed: int = 0
    avg_margin: Decimal = Decimal("0.00")
    negative_profit: int = 0
    listings: int = 0


class SkippedItemResponse(BaseModel):
    variation_sku: str
    listing_id: int
    title: str = ""
    current_price: Decimal
    reason: str  # not_mapped / missing_weight / missing_material_price


# --- Requests ---

class CalculateRequest(BaseModel):
    force: bool = False


class RecalculateRequest(BaseModel):
    variation_skus: list[str] = Field(min_length=1)
    force: bool = False


class SkuSelection(BaseModel):
    variation_skus: list[str] = Field(min_length=1)


class ModifierUpdate(BaseModel):
    variation_sku: str = Field(min_length=1)
    margin_modifier: Decimal


class BulkMarginRequest(BaseModel):
    variation_skus: list[str] = Field(min_length=1)
    margin_percent: Decimal


# --- Batch results ---

class ItemIssueResponse(BaseModel):
    variation_sku: str
    reason: str
    listing_id: int | None = None


class CalculationResponse(BaseModel):
    calculated: int
    skipped: int
    skip_reasons: dict[str, int] = {}
    skipped_items: list[ItemIssueResponse] = []


class TransitionResponse(BaseModel):
    updated: int
    skipped: list[ItemIssueResponse] = []


class BulkMarginResponse(BaseModel):
    updated: int
    failed: int
    failures: list[ItemIssueResponse] = []


class PushResponse(BaseModel):
    pushed: int
    failed: int
    pushed_skus: list[str] = []
    failures: list[ItemIssueResponse] = []
    skipped: list[ItemIssueResponse] = []


# --- Catalogue ---

class MaterialUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    cost_per_gram: Decimal | None = Field(default=None, gt=0)
    sell_price_per_gram: Decimal | None = Field(default=None, gt=0)


class MaterialResponse(BaseModel):
    material_id: str
    name: str
    cost_per_gram: Decimal | None
    sell_price_per_gram: Decimal | None

    model_config = {"from_attributes": True}


class MasterProductUpdate(BaseModel):
    product_type: str = Field(default="", max_length=50)
    length: Decimal | None = Field(default=None, gt=0)
    weight_grams: Decimal | None = Field(default=None, gt=0)
    material_id: str | None = None
    postage_cost: Decimal = Field(default=Decimal("0"), ge=0)


class MasterProductResponse(BaseModel):
    internal_sku: str
    product_type: str
    length: Decimal | None
    weight_grams: Decimal | None
    material_id: str | None
    postage_cost: Decimal

    model_config = {"from_attributes": True}


class SkuMappingUpdate(BaseModel):
    internal_sku: str = Field(min_length=1)
    is_active: bool = True


class SkuMappingResponse(BaseModel):
    id: int
    marketplace: str
    variation_sku: str
    internal_sku: str | None
    is_active: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


class UnmappedVariationResponse(BaseModel):
    listing_id: int
    variation_sku: str
    price: Decimal
    property_values: str = ""

    model_config = {"from_attributes": True}


class ListingResponse(BaseModel):
    listing_id: int
    title: str
    sku: str | None
    price: Decimal
    quantity: int
    state: str
    has_variations: bool
    last_synced_at: datetime | None
    variation_count: int = 0


# --- System ---

class ServiceStatus(BaseModel):
    name: str
    status: str  # "ok" / "degraded" / "unavailable"
    detail: str = ""


class HealthResponse(BaseModel):
    status: str = "ok"  # "ok" / "degraded"
    staged_count: int = 0
    services: list[ServiceStatus] = []
