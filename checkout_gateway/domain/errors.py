"""
Failure taxonomy for checkout processing.

Every failure the orchestrator can report is a PaymentError carrying a
ReasonCode. Validation failures happen before any remote call; gateway
failures are split into transport trouble (GatewayUnreachable) and
responses the gateway did send but that do not prove a resource was
created (InvalidResult and its subclasses).
"""
from enum import Enum
from typing import Any, Optional


class ReasonCode(str, Enum):
    """Machine-readable failure reasons stored on the processing context."""

    VALIDATION_FAILED = "validation_failed"
    GATEWAY_UNREACHABLE = "gateway_unreachable"
    INVALID_RESPONSE_CODE = "invalid_response_code"
    INVALID_ID = "invalid_id"
    INVALID_ORDER_STATE = "invalid_order_state"
    UNKNOWN_ERROR = "unknown_error"
    NOT_ISSUED = "not_issued"


class PaymentError(Exception):
    """Base exception for checkout processing failures."""

    reason_code: ReasonCode = ReasonCode.UNKNOWN_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(PaymentError):
    """Raised when a processing context is missing a field or has a mistyped one."""

    reason_code = ReasonCode.VALIDATION_FAILED

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class GatewayUnreachable(PaymentError):
    """Raised when the gateway could not be reached or answered garbage."""

    reason_code = ReasonCode.GATEWAY_UNREACHABLE

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.resource = resource
        self.original_error = original_error


class InvalidResult(PaymentError):
    """
    Base for gateway responses that do not confirm a created resource.

    Attributes:
        resource: Resource kind the envelope belongs to
        envelope: Raw response envelope, kept for diagnostics
        response_code: Gateway response code, if the failure carried one
    """

    def __init__(
        self,
        message: str,
        resource: str,
        envelope: Any = None,
        response_code: Optional[int] = None,
    ):
        super().__init__(f"Invalid Result Exception: {message}")
        self.resource = resource
        self.envelope = envelope
        self.response_code = response_code


class InvalidResponseCode(InvalidResult):
    reason_code = ReasonCode.INVALID_RESPONSE_CODE


class InvalidId(InvalidResult):
    reason_code = ReasonCode.INVALID_ID


class InvalidOrderState(InvalidResult):
    """Transaction was issued but is still open, so no money is confirmed."""

    reason_code = ReasonCode.INVALID_ORDER_STATE


class UnknownError(InvalidResult):
    reason_code = ReasonCode.UNKNOWN_ERROR


class NotIssued(InvalidResult):
    reason_code = ReasonCode.NOT_ISSUED
