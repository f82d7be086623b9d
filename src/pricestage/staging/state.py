"""Status state machine for staged prices.

    (new) --calculate--> pending --approve--> approved --push--> pushed
                          ^   |                 |  ^
                          |   +----reject-------+  |
                          |        v               |
                          +--- rejected --approve--+

Every status change goes through ``transition``; a pushed record only leaves
``pushed`` through ``force_calculate``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from . import InvalidTransition


class StagingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUSHED = "pushed"


class Action(str, enum.Enum):
    CALCULATE = "calculate"
    FORCE_CALCULATE = "force_calculate"
    APPROVE = "approve"
    REJECT = "reject"
    PUSH = "push"


@dataclass(frozen=True)
class Rule:
    sources: frozenset
    target: StagingStatus
    from_new: bool = False


_S = StagingStatus

TRANSITIONS: dict[Action, Rule] = {
    Action.CALCULATE: Rule(frozenset({_S.PENDING, _S.APPROVED, _S.REJECTED}), _S.PENDING, from_new=True),
    Action.FORCE_CALCULATE: Rule(frozenset(_S), _S.PENDING, from_new=True),
    Action.APPROVE: Rule(frozenset({_S.PENDING, _S.REJECTED}), _S.APPROVED),
    Action.REJECT: Rule(frozenset({_S.PENDING, _S.APPROVED}), _S.REJECTED),
    Action.PUSH: Rule(frozenset({_S.APPROVED}), _S.PUSHED),
}


def current_status(record) -> StagingStatus | None:
    """Status of a record, or None for one not yet written."""
    return StagingStatus(record.status) if record.status else None


def can(record, action: Action) -> bool:
    rule = TRANSITIONS[action]
    status = current_status(record)
    if status is None:
        return rule.from_new
    return status in rule.sources


def transition(record, action: Action, now: datetime) -> StagingStatus | None:
    """Move ``record`` along ``action`` and stamp its timestamps.

    Returns the previous status. Raises InvalidTransition and leaves the
    record untouched when the action is not allowed from its status.
    """
    previous = current_status(record)
    if not can(record, action):
        raise InvalidTransition(record.variation_sku, record.status, action.value)

    record.status = TRANSITIONS[action].target.value
    if action in (Action.CALCULATE, Action.FORCE_CALCULATE):
        record.calculated_at = now
        record.approved_at = None
        if action is Action.FORCE_CALCULATE:
            record.pushed_at = None
    elif action is Action.APPROVE:
        record.approved_at = now
    elif action is Action.REJECT:
        record.approved_at = None
    elif action is Action.PUSH:
        record.pushed_at = now
    return previous


def ensure_editable(record) -> None:
    """Margin edits are allowed on anything not yet pushed; status is kept."""
    if current_status(record) is StagingStatus.PUSHED:
        raise InvalidTransition(record.variation_sku, record.status, "edit margin of")
