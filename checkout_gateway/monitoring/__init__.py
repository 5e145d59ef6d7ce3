"""Monitoring and observability package."""
from .logging import (
    AuditLog,
    PaymentLogger,
    StructlogPaymentLogger,
    render_detail,
    setup_logging,
)
from . import metrics

__all__ = [
    "AuditLog",
    "PaymentLogger",
    "StructlogPaymentLogger",
    "metrics",
    "render_detail",
    "setup_logging",
]
