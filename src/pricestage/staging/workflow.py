"""Pricing workflow: calculate, adjust, approve/reject and push staged prices.

Batch operations never stop at the first bad SKU. Each item's outcome is
written on its own, and the result lists what succeeded, failed or was
skipped so the caller can act on individual SKUs.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..catalogue import Catalogue, PriceableItem
from ..models import StagingEvent, StagingRecord
from ..pricing import MarginError, UnsolvableMargin
from ..pricing.fees import money
from ..pricing.resolver import CostInputs, CostResolver, SkipReason
from ..pricing.solver import PricingPolicy
from . import InvalidTransition, MarketplaceUnavailable, RecordNotFound
from .state import Action, StagingStatus, can, ensure_editable, transition
from .store import StagingStore, unique_skus

logger = logging.getLogger(__name__)

# Skip reasons beyond the resolver's own
SKIP_ALREADY_PUSHED = "already_pushed"
SKIP_APPROVED_PRESERVED = "approved_preserved"
SKIP_UNSOLVABLE_MARGIN = "unsolvable_margin"
SKIP_NOT_FOUND = "not_found"
SKIP_SAVE_FAILED = "save_failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketplaceClient(Protocol):
    async def fetch_variation_current_price(self, listing_id: int, variation_sku: str) -> Decimal: ...

    async def update_variation_price(self, listing_id: int, variation_sku: str, price: Decimal) -> None: ...


@dataclass
class ItemIssue:
    sku: str
    reason: str
    listing_id: int | None = None


@dataclass
class CalculationResult:
    calculated: int = 0
    skipped_items: list[ItemIssue] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.skipped_items)

    @property
    def skip_reasons(self) -> dict[str, int]:
        return dict(Counter(issue.reason for issue in self.skipped_items))

    def skip(self, item: PriceableItem, reason: str) -> None:
        self.skipped_items.append(ItemIssue(item.variation_sku, reason, item.listing_id))


def invalid_transition(record: StagingRecord) -> ItemIssue:
    return ItemIssue(record.variation_sku, f"invalid_transition:{record.status}", record.listing_id)


@dataclass
class TransitionResult:
    updated: list[StagingRecord] = field(default_factory=list)
    skipped: list[ItemIssue] = field(default_factory=list)


@dataclass
class BulkMarginResult:
    updated: int = 0
    failures: list[ItemIssue] = field(default_factory=list)


@dataclass
class PushResult:
    pushed: list[str] = field(default_factory=list)
    failures: list[ItemIssue] = field(default_factory=list)
    skipped: list[ItemIssue] = field(default_factory=list)

    @property
    def pushed_count(self) -> int:
        return len(self.pushed)

    @property
    def failed_count(self) -> int:
        return len(self.failures)


class PricingWorkflow:
    """The only writer of staged prices."""

    def __init__(
        self,
        store: StagingStore,
        catalogue: Catalogue,
        policy: PricingPolicy | None = None,
        marketplace: MarketplaceClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.catalogue = catalogue
        self.policy = policy or PricingPolicy.from_settings()
        self.marketplace = marketplace
        self.clock = clock
        self.resolver = CostResolver.for_policy(catalogue, self.policy)

    # --- Calculation ---

    def calculate_all(self, force: bool = False) -> CalculationResult:
        """Stage a price for every priceable variation in the catalogue."""
        result = self._calculate(self.catalogue.priceable_items(), force)
        logger.info(
            "Price calculation: calculated=%d skipped=%d %s",
            result.calculated, result.skipped, result.skip_reasons,
        )
        return result

    def recalculate(self, skus: Iterable[str], force: bool = False) -> CalculationResult:
        """Recalculate selected SKUs; ``force`` also supersedes pushed prices."""
        result = self._calculate(self.catalogue.priceable_items(skus=unique_skus(skus)), force)
        logger.info(
            "Price recalculation (force=%s): calculated=%d skipped=%d",
            force, result.calculated, result.skipped,
        )
        return result

    def _calculate(self, items: list[PriceableItem], force: bool) -> CalculationResult:
        result = CalculationResult()
        action = Action.FORCE_CALCULATE if force else Action.CALCULATE

        for item in items:
            record = self.store.get(item.listing_id, item.variation_sku)
            if record is not None and not force:
                if record.status == StagingStatus.PUSHED.value:
                    result.skip(item, SKIP_ALREADY_PUSHED)
                    continue
                if (
                    record.status == StagingStatus.APPROVED.value
                    and self.policy.recalc_approved == "preserve"
                ):
                    result.skip(item, SKIP_APPROVED_PRESERVED)
                    continue

            inputs = self.resolver.resolve(item.variation_sku)
            if isinstance(inputs, SkipReason):
                result.skip(item, inputs.value)
                continue

            margin = record.margin_modifier if record is not None else Decimal("0")
            base = self.policy.baseline(inputs)
            try:
                price = self.policy.price(inputs.material_cost, inputs.postage_cost, base, margin)
            except UnsolvableMargin as e:
                logger.warning("Skipping %s: %s", item.variation_sku, e)
                result.skip(item, SKIP_UNSOLVABLE_MARGIN)
                continue

            if record is None:
                record = self.store.new_record(item.listing_id, item.variation_sku)
                record.margin_modifier = Decimal("0")
            old_price = record.calculated_price
            previous = transition(record, action, self.clock())
            self._snapshot(record, item, inputs)
            self._apply_price(record, base, price)

            event = None
            if previous is None or previous.value != record.status or old_price != price:
                event = StagingEvent(
                    event_type="superseded" if previous is StagingStatus.PUSHED else "calculated",
                    old_status=previous.value if previous else None,
                    new_status=record.status,
                    old_price=old_price,
                    new_price=price,
                )
            error = self._try_save(record, event)
            if error:
                logger.warning("Calculation for %s not saved: %s", item.variation_sku, error)
                result.skip(item, SKIP_SAVE_FAILED)
                continue
            result.calculated += 1
        return result

    def _try_save(self, record: StagingRecord, event: StagingEvent | None) -> str | None:
        """Save one batch item; a database error is returned instead of raised."""
        try:
            self.store.save(record, event)
        except SQLAlchemyError as e:
            return str(e) or e.__class__.__name__
        return None

    def _snapshot(self, record: StagingRecord, item: PriceableItem, inputs: CostInputs) -> None:
        record.internal_sku = inputs.internal_sku
        record.current_price = money(item.current_price)
        record.weight_grams = inputs.weight_grams
        record.material_id = inputs.material_id
        record.material_cost = inputs.material_cost
        record.postage_cost = inputs.postage_cost

    def _apply_price(self, record: StagingRecord, base: Decimal, price: Decimal) -> None:
        """Write the price and everything derived from it."""
        fee_model = self.policy.fee_model
        fees = fee_model.fees_for(price)
        profit = fee_model.profit_for(price, record.material_cost, record.postage_cost)
        record.base_calculated_price = base
        record.calculated_price = price
        record.transaction_fee = fees.transaction_fee
        record.payment_fee = fees.payment_fee
        record.ad_fee = fees.ad_fee
        record.listing_fee = fees.listing_fee
        record.total_fees = fees.total_fees
        record.profit = profit.profit_with_ads
        record.profit_margin_pct = profit.margin_with_ads_pct

    # --- Margin modifier ---

    def update_modifier(self, variation_sku: str, margin) -> list[StagingRecord]:
        """Set one SKU's target margin; the status is left as it is."""
        margin = self.policy.validate_margin(margin)
        records = self.store.find_by_skus([variation_sku])
        if not records:
            raise RecordNotFound(variation_sku)
        for record in records:
            ensure_editable(record)
        for record in records:
            self._set_modifier(record, margin)
        return records

    def apply_bulk_margin(self, skus: Iterable[str], margin) -> BulkMarginResult:
        """Apply one margin to many SKUs; a bad SKU does not block the rest."""
        margin = self.policy.validate_margin(margin)
        skus = unique_skus(skus)
        result = BulkMarginResult()
        records = self.store.find_by_skus(skus)

        found = {r.variation_sku for r in records}
        for sku in skus:
            if sku not in found:
                result.failures.append(ItemIssue(sku, SKIP_NOT_FOUND))

        for record in records:
            try:
                ensure_editable(record)
                self._set_modifier(record, margin)
            except (InvalidTransition, MarginError, SQLAlchemyError) as e:
                logger.warning("Bulk margin failed for %s: %s", record.variation_sku, e)
                result.failures.append(ItemIssue(record.variation_sku, str(e), record.listing_id))
                continue
            result.updated += 1

        logger.info(
            "Bulk margin %s%%: updated=%d failed=%d", margin, result.updated, len(result.failures)
        )
        return result

    def _set_modifier(self, record: StagingRecord, margin: Decimal) -> None:
        price = self.policy.price(
            record.material_cost, record.postage_cost, record.base_calculated_price, margin
        )
        old_price = record.calculated_price
        record.margin_modifier = margin
        self._apply_price(record, record.base_calculated_price, price)
        self.store.save(record, StagingEvent(
            event_type="modifier",
            old_status=record.status,
            new_status=record.status,
            old_price=old_price,
            new_price=price,
            message=f"margin {margin}%",
        ))

    # --- Approval ---

    def approve(self, skus: Iterable[str]) -> TransitionResult:
        return self._batch_transition(skus, Action.APPROVE, "approved")

    def reject(self, skus: Iterable[str]) -> TransitionResult:
        return self._batch_transition(skus, Action.REJECT, "rejected")

    def _batch_transition(self, skus, action: Action, event_type: str) -> TransitionResult:
        skus = unique_skus(skus)
        result = TransitionResult()
        records = self.store.find_by_skus(skus)

        found = {r.variation_sku for r in records}
        for sku in skus:
            if sku not in found:
                result.skipped.append(ItemIssue(sku, SKIP_NOT_FOUND))

        now = self.clock()
        for record in records:
            sku, listing_id = record.variation_sku, record.listing_id
            try:
                previous = transition(record, action, now)
            except InvalidTransition:
                result.skipped.append(invalid_transition(record))
                continue
            error = self._try_save(record, StagingEvent(
                event_type=event_type,
                old_status=previous.value if previous else None,
                new_status=record.status,
                new_price=record.calculated_price,
            ))
            if error:
                logger.warning("%s not saved for %s: %s", action.value, sku, error)
                result.skipped.append(ItemIssue(sku, f"{SKIP_SAVE_FAILED}: {error}", listing_id))
                continue
            result.updated.append(record)

        logger.info(
            "%s: updated=%d skipped=%d", action.value, len(result.updated), len(result.skipped)
        )
        return result

    # --- Push ---

    async def push_selected(self, skus: Iterable[str]) -> PushResult:
        """Push approved prices to the marketplace, one SKU at a time.

        Only a confirmed update moves a record to pushed. A failed call keeps
        it approved with the error recorded, and the batch carries on.
        """
        if self.marketplace is None:
            raise MarketplaceUnavailable("No marketplace client configured")

        skus = unique_skus(skus)
        result = PushResult()
        records = self.store.find_by_skus(skus)

        found = {r.variation_sku for r in records}
        for sku in skus:
            if sku not in found:
                result.skipped.append(ItemIssue(sku, SKIP_NOT_FOUND))

        for record in records:
            if not can(record, Action.PUSH):
                result.skipped.append(invalid_transition(record))
                continue

            sku, price, listing_id = record.variation_sku, record.calculated_price, record.listing_id
            record.last_push_attempt_at = self.clock()
            try:
                await self.marketplace.update_variation_price(record.listing_id, sku, price)
            except Exception as e:
                error = str(e) or e.__class__.__name__
                logger.warning("Push failed for %s (listing %s): %s", sku, record.listing_id, error)
                record.last_push_error = error
                save_error = self._try_save(record, StagingEvent(
                    event_type="push_failed",
                    old_status=record.status,
                    new_status=record.status,
                    new_price=price,
                    message=error,
                ))
                if save_error:
                    logger.warning("Push failure for %s not recorded: %s", sku, save_error)
                result.failures.append(ItemIssue(sku, error, listing_id))
                continue

            previous = transition(record, Action.PUSH, self.clock())
            old_price = record.current_price
            record.current_price = price
            record.last_push_error = ""
            save_error = self._try_save(record, StagingEvent(
                event_type="pushed",
                old_status=previous.value if previous else None,
                new_status=record.status,
                old_price=old_price,
                new_price=price,
            ))
            if save_error:
                logger.error(
                    "Etsy accepted %s for %s (listing %s) but it was not recorded: %s",
                    price, sku, listing_id, save_error,
                )
                result.failures.append(ItemIssue(
                    sku, f"pushed_not_recorded: {save_error}", listing_id
                ))
                continue
            result.pushed.append(sku)

        logger.info(
            "Push complete: pushed=%d failed=%d skipped=%d",
            result.pushed_count, result.failed_count, len(result.skipped),
        )
        return result

    # --- Reads ---

    def stats(self) -> dict:
        stats = self.store.stats()
        avg = stats.get("avg_margin")
        stats["avg_margin"] = money(avg) if avg is not None else Decimal("0.00")
        return stats

    def list_staged(self, status=None, listing_id=None, search=None, limit=None, offset=0):
        return self.store.list_records(status, listing_id, search, limit, offset)

    def count_staged(self, status=None, listing_id=None, search=None) -> int:
        return self.store.count(status, listing_id, search)

    def history(self, variation_sku: str):
        return self.store.history(variation_sku)

    def skipped_items(self) -> list[dict]:
        """Dry-run resolution: which items a calculation pass would skip, and why."""
        skipped = []
        for item in self.catalogue.priceable_items():
            resolved = self.resolver.resolve(item.variation_sku)
            if isinstance(resolved, SkipReason):
                skipped.append({
                    "variation_sku": item.variation_sku,
                    "listing_id": item.listing_id,
                    "title": item.title,
                    "current_price": item.current_price,
                    "reason": resolved.value,
                })
        return skipped
