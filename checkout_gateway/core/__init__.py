"""Core payment orchestration logic."""
from .fast_checkout import fast_checkout_available, refresh_stored_payment_method
from .orchestrator import PaymentOrchestrator
from .result_validator import ResultValidator, extract_preauthorization_id

__all__ = [
    "PaymentOrchestrator",
    "ResultValidator",
    "extract_preauthorization_id",
    "fast_checkout_available",
    "refresh_stored_payment_method",
]
