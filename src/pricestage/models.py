from datetime import datetime, timezone
from decimal import Decimal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base

Money = Numeric(12, 2)
Grams = Numeric(12, 4)


# --- Catalogue (written by sync / maintenance, read by pricing) ---


class Material(Base):
    __tablename__ = "materials"

    material_id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, default="")
    cost_per_gram: Mapped[Decimal | None] = mapped_column(Grams, nullable=True)
    sell_price_per_gram: Mapped[Decimal | None] = mapped_column(Grams, nullable=True)

    products: Mapped[list["MasterProduct"]] = relationship(back_populates="material")


class MasterProduct(Base):
    __tablename__ = "master_products"

    internal_sku: Mapped[str] = mapped_column(Text, primary_key=True)
    product_type: Mapped[str] = mapped_column(Text, default="")
    length: Mapped[Decimal | None] = mapped_column(Grams, nullable=True)
    weight_grams: Mapped[Decimal | None] = mapped_column(Grams, nullable=True)
    material_id: Mapped[str | None] = mapped_column(
        Text, ForeignKey("materials.material_id"), nullable=True
    )
    postage_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))

    material: Mapped["Material"] = relationship(back_populates="products")


class Listing(Base):
    __tablename__ = "listings"

    listing_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, default="")
    sku: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    state: Mapped[str] = mapped_column(Text, default="active")  # active / inactive / draft / sold_out
    has_variations: Mapped[bool] = mapped_column(Boolean, default=False)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    variations: Mapped[list["Variation"]] = relationship(
        back_populates="listing", cascade="all, delete-orphan"
    )


class Variation(Base):
    __tablename__ = "variations"
    __table_args__ = (
        UniqueConstraint("listing_id", "product_id", name="uq_variation_product"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[int] = mapped_column(Integer, ForeignKey("listings.listing_id"), index=True)
    product_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    variation_sku: Mapped[str] = mapped_column(Text, index=True)
    price: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    property_values: Mapped[str] = mapped_column(Text, default="")  # "Size: 7 / Finish: Polished"
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    listing: Mapped["Listing"] = relationship(back_populates="variations")


class SkuMapping(Base):
    __tablename__ = "sku_mappings"
    __table_args__ = (
        UniqueConstraint("marketplace", "variation_sku", name="uq_sku_mapping"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    marketplace: Mapped[str] = mapped_column(Text, default="etsy")
    variation_sku: Mapped[str] = mapped_column(Text, index=True)
    internal_sku: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# --- Pricing staging ---


class StagingRecord(Base):
    __tablename__ = "pricing_staging"
    __table_args__ = (
        UniqueConstraint("listing_id", "variation_sku", name="uq_staging_listing_sku"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[int] = mapped_column(Integer, index=True)
    variation_sku: Mapped[str] = mapped_column(Text, index=True)
    internal_sku: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_price: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))

    # Cost snapshot, frozen until the next calculation
    weight_grams: Mapped[Decimal | None] = mapped_column(Grams, nullable=True)
    material_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    material_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    postage_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))

    margin_modifier: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    base_calculated_price: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    calculated_price: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))

    # Fee snapshot at calculated_price (with ads)
    transaction_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    payment_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    ad_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    listing_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    total_fees: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    profit: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    profit_margin_pct: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))

    status: Mapped[str] = mapped_column(Text, default="pending", index=True)  # pending / approved / rejected / pushed
    calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    pushed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_push_error: Mapped[str] = mapped_column(Text, default="")
    last_push_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    events: Mapped[list["StagingEvent"]] = relationship(
        back_populates="record", cascade="all, delete-orphan", order_by="StagingEvent.id"
    )


class StagingEvent(Base):
    __tablename__ = "staging_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    record_id: Mapped[int] = mapped_column(Integer, ForeignKey("pricing_staging.id"), index=True)
    variation_sku: Mapped[str] = mapped_column(Text)
    event_type: Mapped[str] = mapped_column(Text)
    # calculated / superseded / modifier / approved / rejected / pushed / push_failed

    old_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    old_price: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    new_price: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    message: Mapped[str] = mapped_column(Text, default="")

    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    record: Mapped["StagingRecord"] = relationship(back_populates="events")
