"""
Checkout Gateway - payment orchestration against a resource-style card gateway.

Drives one checkout attempt through the gateway's resource creations:
1. Client (the payer)
2. Payment method (tokenised card bound to the client)
3. Transaction or preauthorization
4. Optional refund or top-up transaction when a prior authorization
   must be reconciled against the final basket amount
"""

from checkout_gateway.core import PaymentOrchestrator, ResultValidator
from checkout_gateway.domain import ProcessingContext, ProcessingMode

__version__ = "1.0.0"

__all__ = [
    "PaymentOrchestrator",
    "ProcessingContext",
    "ProcessingMode",
    "ResultValidator",
]
