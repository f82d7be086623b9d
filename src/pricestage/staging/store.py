"""Persistence for staged prices."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..models import StagingEvent, StagingRecord

logger = logging.getLogger(__name__)


def unique_skus(skus) -> list[str]:
    """Drop duplicates and blanks, keeping the caller's order."""
    seen: dict[str, None] = {}
    for sku in skus:
        if sku and sku not in seen:
            seen[sku] = None
    return list(seen)


class StagingStore(Protocol):
    def get(self, listing_id: int, variation_sku: str) -> StagingRecord | None: ...

    def new_record(self, listing_id: int, variation_sku: str) -> StagingRecord: ...

    def find_by_skus(self, skus: list[str]) -> list[StagingRecord]: ...

    def list_records(
        self,
        status: str | None = None,
        listing_id: int | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[StagingRecord]: ...

    def count(self, status: str | None = None, listing_id: int | None = None, search: str | None = None) -> int: ...

    def save(self, record: StagingRecord, event: StagingEvent | None = None) -> StagingRecord: ...

    def history(self, variation_sku: str) -> list[StagingEvent]: ...

    def stats(self) -> dict: ...


class SqlStagingStore:
    """SQLAlchemy-backed store; each ``save`` is its own transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, listing_id: int, variation_sku: str) -> StagingRecord | None:
        return (
            self.db.query(StagingRecord)
            .filter(
                StagingRecord.listing_id == listing_id,
                StagingRecord.variation_sku == variation_sku,
            )
            .first()
        )

    def new_record(self, listing_id: int, variation_sku: str) -> StagingRecord:
        return StagingRecord(listing_id=listing_id, variation_sku=variation_sku)

    def find_by_skus(self, skus: list[str]) -> list[StagingRecord]:
        """Records for ``skus`` in the caller's order (then by listing)."""
        skus = unique_skus(skus)
        if not skus:
            return []
        order = {sku: i for i, sku in enumerate(skus)}
        records = (
            self.db.query(StagingRecord)
            .filter(StagingRecord.variation_sku.in_(skus))
            .all()
        )
        return sorted(records, key=lambda r: (order[r.variation_sku], r.listing_id))

    def _filtered(self, status=None, listing_id=None, search=None):
        query = self.db.query(StagingRecord)
        if status:
            query = query.filter(StagingRecord.status == status)
        if listing_id is not None:
            query = query.filter(StagingRecord.listing_id == listing_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                StagingRecord.variation_sku.ilike(pattern) | StagingRecord.internal_sku.ilike(pattern)
            )
        return query

    def list_records(self, status=None, listing_id=None, search=None, limit=None, offset=0):
        query = self._filtered(status, listing_id, search).order_by(
            StagingRecord.listing_id, StagingRecord.variation_sku
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, status=None, listing_id=None, search=None) -> int:
        return self._filtered(status, listing_id, search).count()

    def save(self, record: StagingRecord, event: StagingEvent | None = None) -> StagingRecord:
        try:
            self.db.add(record)
            self.db.flush()
            if event is not None:
                event.record_id = record.id
                event.variation_sku = record.variation_sku
                self.db.add(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return record

    def history(self, variation_sku: str) -> list[StagingEvent]:
        return (
            self.db.query(StagingEvent)
            .filter(StagingEvent.variation_sku == variation_sku)
            .order_by(StagingEvent.id)
            .all()
        )

    def stats(self) -> dict:
        def _count_status(status: str):
            return func.sum(case((StagingRecord.status == status, 1), else_=0))

        row = self.db.query(
            func.count(StagingRecord.id),
            _count_status("pending"),
            _count_status("approved"),
            _count_status("rejected"),
            _count_status("pushed"),
            func.avg(StagingRecord.profit_margin_pct),
            func.sum(case((StagingRecord.profit < 0, 1), else_=0)),
            func.count(func.distinct(StagingRecord.listing_id)),
        ).one()
        total, pending, approved, rejected, pushed, avg_margin, negative, listings = row
        return {
            "total": total or 0,
            "pending": pending or 0,
            "approved": approved or 0,
            "rejected": rejected or 0,
            "pushed": pushed or 0,
            "avg_margin": avg_margin,
            "negative_profit": negative or 0,
            "listings": listings or 0,
        }
