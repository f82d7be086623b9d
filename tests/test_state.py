"""Tests for the staged price status machine."""

from datetime import datetime, timezone

import pytest

from pricestage.models import StagingRecord
from pricestage.staging import InvalidTransition
from pricestage.staging.state import Action, StagingStatus, can, ensure_editable, transition

FIXED_NOW = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)


def _record(status=None):
    return StagingRecord(listing_id=1, variation_sku="SKU-1", status=status)


class TestTransitions:
    def test_new_record_calculates_to_pending(self):
        record = _record()
        previous = transition(record, Action.CALCULATE, FIXED_NOW)
        assert previous is None
        assert record.status == "pending"
        assert record.calculated_at == FIXED_NOW

    def test_new_record_cannot_be_approved(self):
        assert not can(_record(), Action.APPROVE)

    def test_approve_pending(self):
        record = _record("pending")
        previous = transition(record, Action.APPROVE, FIXED_NOW)
        assert previous is StagingStatus.PENDING
        assert record.status == "approved"
        assert record.approved_at == FIXED_NOW

    def test_reject_clears_approval(self):
        record = _record("approved")
        record.approved_at = FIXED_NOW
        transition(record, Action.REJECT, FIXED_NOW)
        assert record.status == "rejected"
        assert record.approved_at is None

    def test_rejected_can_be_approved(self):
        record = _record("rejected")
        transition(record, Action.APPROVE, FIXED_NOW)
        assert record.status == "approved"

    def test_push_only_from_approved(self):
        for status in ("pending", "rejected", "pushed"):
            assert not can(_record(status), Action.PUSH)
        assert can(_record("approved"), Action.PUSH)

    def test_push_stamps_pushed_at(self):
        record = _record("approved")
        transition(record, Action.PUSH, FIXED_NOW)
        assert record.status == "pushed"
        assert record.pushed_at == FIXED_NOW

    def test_pushed_is_terminal_without_force(self):
        for action in (Action.CALCULATE, Action.APPROVE, Action.REJECT, Action.PUSH):
            record = _record("pushed")
            with pytest.raises(InvalidTransition):
                transition(record, action, FIXED_NOW)
            assert record.status == "pushed"

    def test_force_calculate_supersedes_pushed(self):
        record = _record("pushed")
        record.pushed_at = FIXED_NOW
        previous = transition(record, Action.FORCE_CALCULATE, FIXED_NOW)
        assert previous is StagingStatus.PUSHED
        assert record.status == "pending"
        assert record.pushed_at is None

    def test_recalculate_resets_approval(self):
        record = _record("approved")
        record.approved_at = FIXED_NOW
        transition(record, Action.CALCULATE, FIXED_NOW)
        assert record.status == "pending"
        assert record.approved_at is None

    def test_invalid_transition_message(self):
        with pytest.raises(InvalidTransition, match="Cannot approve SKU-1 while pushed"):
            transition(_record("pushed"), Action.APPROVE, FIXED_NOW)


class TestEnsureEditable:
    def test_pushed_not_editable(self):
        with pytest.raises(InvalidTransition):
            ensure_editable(_record("pushed"))

    def test_others_editable(self):
        for status in ("pending", "approved", "rejected"):
            ensure_editable(_record(status))
