"""
Mode selection and reconciliation arithmetic.

Both are pure functions of the processing context so the orchestrator's
branching can be tested without a gateway.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from checkout_gateway.domain.context import ProcessingContext


class ProcessingMode(Enum):
    """How a processing attempt moves money."""

    DIRECT = "direct"  # one transaction for the basket amount
    PREAUTHORIZE = "preauthorize"  # hold funds, optionally capture right away
    RECONCILE = "reconcile"  # correct an earlier charge to the basket amount


class AdjustmentAction(Enum):
    """Corrective operation chosen by reconciliation."""

    REFUND = "refund"
    TOP_UP = "top_up"
    NONE = "none"


@dataclass(frozen=True)
class ReconciliationPlan:
    """The single corrective operation and its (always positive) amount."""

    action: AdjustmentAction
    amount: int = 0


def select_mode(context: ProcessingContext, capture_immediately: bool) -> ProcessingMode:
    """
    Pick the processing mode from the context fields.

    - An earlier transaction exists: RECONCILE. Equal amounts, or no
      authorized amount, plan no adjustment.
    - No authorized amount, or one equal to the basket: DIRECT when capturing
      immediately, otherwise PREAUTHORIZE.
    - Amounts differ and nothing was charged yet: PREAUTHORIZE the
      authorized amount (the capture then charges the basket amount).
    """
    if context.transaction_id:
        return ProcessingMode.RECONCILE
    authorized = context.authorized_amount
    if authorized is None or authorized == context.basket_amount:
        return ProcessingMode.DIRECT if capture_immediately else ProcessingMode.PREAUTHORIZE
    return ProcessingMode.PREAUTHORIZE


def preauthorization_amount(context: ProcessingContext) -> int:
    """Amount to hold: the authorized amount when given, else the basket."""
    if context.authorized_amount is not None:
        return context.authorized_amount
    return context.basket_amount


def compute_delta(authorized_amount: int, basket_amount: int) -> int:
    """Signed difference; positive means more was authorized than is owed."""
    return authorized_amount - basket_amount


def plan_adjustment(
    authorized_amount: Optional[int], basket_amount: int
) -> ReconciliationPlan:
    """
    Choose exactly one of refund, top-up or nothing.

    Example:
        plan_adjustment(1500, 1000) -> ReconciliationPlan(REFUND, 500)
        plan_adjustment(1000, 1200) -> ReconciliationPlan(TOP_UP, 200)
    """
    if authorized_amount is None:
        return ReconciliationPlan(AdjustmentAction.NONE)

    delta = compute_delta(authorized_amount, basket_amount)
    if delta > 0:
        return ReconciliationPlan(AdjustmentAction.REFUND, delta)
    if delta < 0:
        return ReconciliationPlan(AdjustmentAction.TOP_UP, -delta)
    return ReconciliationPlan(AdjustmentAction.NONE)
