"""
Fast checkout helpers for callers that store gateway ids between purchases.

The orchestrator trusts stored client and payment method ids. A caller that
wants to prove a stored payment method still resolves does so here, before
building the orchestrator call, and drops the id when it is gone.
"""
from typing import Optional

import structlog

from checkout_gateway.core.result_validator import ResultValidator
from checkout_gateway.domain import InvalidResult, ProcessingContext
from checkout_gateway.integrations import GatewayResourceClient, ResourceKind

logger = structlog.get_logger(__name__)


def fast_checkout_available(context: ProcessingContext) -> bool:
    """Both a client and a payment method are on file."""
    return bool(context.client_id and context.payment_method_id)


def refresh_stored_payment_method(
    context: ProcessingContext,
    payments: GatewayResourceClient,
    validator: Optional[ResultValidator] = None,
) -> bool:
    """
    Fetch the stored payment method once and clear it when it no longer resolves.

    Args:
        context: Context carrying the stored payment_method_id
        payments: Payment method resource client
        validator: Optional validator (success code override)

    Returns:
        bool: True when the stored payment method is still usable

    Raises:
        GatewayUnreachable: The gateway could not answer; the id is kept
    """
    if not context.payment_method_id:
        return False

    stored_id = context.payment_method_id
    envelope = payments.fetch(stored_id)
    try:
        (validator or ResultValidator()).validate(envelope, ResourceKind.PAYMENT_METHOD)
    except InvalidResult as exc:
        logger.info(
            "stored_payment_method_dropped",
            payment_method_id=stored_id,
            reason_code=exc.reason_code.value,
        )
        context.payment_method_id = None
        return False

    logger.info("stored_payment_method_verified", payment_method_id=stored_id)
    return True
