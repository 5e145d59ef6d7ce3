"""
Domain layer - checkout state, mode selection and the failure taxonomy.

No gateway or transport imports here; everything is testable in memory.
"""
from .context import CheckoutParameters, ProcessingContext, mask_token
from .errors import (
    GatewayUnreachable,
    InvalidId,
    InvalidOrderState,
    InvalidResponseCode,
    InvalidResult,
    NotIssued,
    PaymentError,
    ReasonCode,
    UnknownError,
    ValidationFailed,
)
from .reconciliation import (
    AdjustmentAction,
    ProcessingMode,
    ReconciliationPlan,
    compute_delta,
    plan_adjustment,
    preauthorization_amount,
    select_mode,
)

__all__ = [
    "AdjustmentAction",
    "CheckoutParameters",
    "GatewayUnreachable",
    "InvalidId",
    "InvalidOrderState",
    "InvalidResponseCode",
    "InvalidResult",
    "NotIssued",
    "PaymentError",
    "ProcessingContext",
    "ProcessingMode",
    "ReasonCode",
    "ReconciliationPlan",
    "UnknownError",
    "ValidationFailed",
    "compute_delta",
    "mask_token",
    "plan_adjustment",
    "preauthorization_amount",
    "select_mode",
]
