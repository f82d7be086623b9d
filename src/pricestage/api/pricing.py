"""Staged pricing: calculate, review, adjust margins, approve/reject and push."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..catalogue import SqlCatalogue
from ..database import get_db
from ..pricing import MarginError
from ..schemas import (
    BulkMarginRequest,
    BulkMarginResponse,
    CalculateRequest,
    CalculationResponse,
    ItemIssueResponse,
    ModifierUpdate,
    PushResponse,
    RecalculateRequest,
    SkippedItemResponse,
    SkuSelection,
    StagedPriceListResponse,
    StagedPriceResponse,
    StagingEventResponse,
    StagingStatsResponse,
    TransitionResponse,
)
from ..staging import InvalidTransition, MarketplaceUnavailable, RecordNotFound
from ..staging.state import StagingStatus
from ..staging.store import SqlStagingStore
from ..staging.workflow import CalculationResult, ItemIssue, PricingWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/pricing", tags=["pricing"])

VALID_STATUSES = tuple(s.value for s in StagingStatus)


def get_workflow(db: Session = Depends(get_db)) -> PricingWorkflow:
    from ..main import app_state

    return PricingWorkflow(
        SqlStagingStore(db),
        SqlCatalogue(db),
        marketplace=app_state.get("etsy"),
    )


def _issues(items: list[ItemIssue]) -> list[ItemIssueResponse]:
    return [
        ItemIssueResponse(variation_sku=i.sku, reason=i.reason, listing_id=i.listing_id)
        for i in items
    ]


def _calculation_response(result: CalculationResult) -> CalculationResponse:
    return CalculationResponse(
        calculated=result.calculated,
        skipped=result.skipped,
        skip_reasons=result.skip_reasons,
        skipped_items=_issues(result.skipped_items),
    )


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------

@router.post("/calculate", response_model=CalculationResponse)
def calculate_prices(
    body: CalculateRequest | None = None,
    workflow: PricingWorkflow = Depends(get_workflow),
):
    force = body.force if body else False
    return _calculation_response(workflow.calculate_all(force=force))


@router.post("/recalculate", response_model=CalculationResponse)
def recalculate_prices(body: RecalculateRequest, workflow: PricingWorkflow = Depends(get_workflow)):
    return _calculation_response(workflow.recalculate(body.variation_skus, force=body.force))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@router.get("/staged", response_model=StagedPriceListResponse)
def list_staged(
    status: str | None = None,
    listing_id: int | None = None,
    q: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    workflow: PricingWorkflow = Depends(get_workflow),
):
    if status and status not in VALID_STATUSES:
        raise HTTPException(400, f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    records = workflow.list_staged(status, listing_id, q, limit, offset)
    total = workflow.count_staged(status, listing_id, q)
    return StagedPriceListResponse(
        items=[StagedPriceResponse.model_validate(r) for r in records],
        total=total,
    )


@router.get("/staged/{variation_sku}/history", response_model=list[StagingEventResponse])
def staged_history(variation_sku: str, workflow: PricingWorkflow = Depends(get_workflow)):
    events = workflow.history(variation_sku)
    if not events:
        raise HTTPException(404, f"No history for {variation_sku}")
    return events


@router.get("/stats", response_model=StagingStatsResponse)
def staging_stats(workflow: PricingWorkflow = Depends(get_workflow)):
    return StagingStatsResponse(**workflow.stats())


@router.get("/skipped", response_model=list[SkippedItemResponse])
def skipped_items(workflow: PricingWorkflow = Depends(get_workflow)):
    return workflow.skipped_items()


# ---------------------------------------------------------------------------
# Margin modifier
# ---------------------------------------------------------------------------

@router.post("/update-modifier", response_model=list[StagedPriceResponse])
def update_modifier(body: ModifierUpdate, workflow: PricingWorkflow = Depends(get_workflow)):
    try:
        return workflow.update_modifier(body.variation_sku, body.margin_modifier)
    except MarginError as e:
        raise HTTPException(400, str(e))
    except RecordNotFound as e:
        raise HTTPException(404, str(e))
    except InvalidTransition as e:
        raise HTTPException(409, str(e))


@router.post("/bulk-margin", response_model=BulkMarginResponse)
def bulk_margin(body: BulkMarginRequest, workflow: PricingWorkflow = Depends(get_workflow)):
    try:
        result = workflow.apply_bulk_margin(body.variation_skus, body.margin_percent)
    except MarginError as e:
        raise HTTPException(400, str(e))
    return BulkMarginResponse(
        updated=result.updated,
        failed=len(result.failures),
        failures=_issues(result.failures),
    )


# ---------------------------------------------------------------------------
# Approval and push
# ---------------------------------------------------------------------------

@router.post("/approve", response_model=TransitionResponse)
def approve_prices(body: SkuSelection, workflow: PricingWorkflow = Depends(get_workflow)):
    result = workflow.approve(body.variation_skus)
    return TransitionResponse(updated=len(result.updated), skipped=_issues(result.skipped))


@router.post("/reject", response_model=TransitionResponse)
def reject_prices(body: SkuSelection, workflow: PricingWorkflow = Depends(get_workflow)):
    result = workflow.reject(body.variation_skus)
    return TransitionResponse(updated=len(result.updated), skipped=_issues(result.skipped))


@router.post("/push", response_model=PushResponse)
async def push_prices(body: SkuSelection, workflow: PricingWorkflow = Depends(get_workflow)):
    try:
        result = await workflow.push_selected(body.variation_skus)
    except MarketplaceUnavailable:
        raise HTTPException(503, "Etsy API not configured")
    return PushResponse(
        pushed=result.pushed_count,
        failed=result.failed_count,
        pushed_skus=result.pushed,
        failures=_issues(result.failures),
        skipped=_issues(result.skipped),
    )
