"""
Payment orchestrator - drives the gateway for one checkout attempt.

Orchestrates the processing flow:
1. Validate the processing context
2. Ensure a gateway client (reuse a stored one when present)
3. Ensure a payment method (reuse a stored one when present)
4. Branch on mode:
   - DIRECT: one transaction for the basket amount
   - PREAUTHORIZE: hold funds, capture right away when asked
   - RECONCILE: refund or top up an earlier charge by the delta
5. Record the outcome on the context

Created clients and payment methods are never rolled back on failure; their
ids stay on the context so a retry reuses them. Charging operations are
never retried within one call.
"""
import uuid
from typing import Any, Dict, Optional

import structlog

from checkout_gateway.config import GatewaySettings
from checkout_gateway.core.result_validator import (
    DEFAULT_SUCCESS_CODE,
    ResultValidator,
    extract_preauthorization_id,
)
from checkout_gateway.domain import (
    AdjustmentAction,
    GatewayUnreachable,
    InvalidResult,
    PaymentError,
    ProcessingContext,
    ProcessingMode,
    ValidationFailed,
    plan_adjustment,
    preauthorization_amount,
    select_mode,
)
from checkout_gateway.integrations import GatewayResourceClient, GatewayResources, ResourceKind
from checkout_gateway.monitoring import AuditLog, PaymentLogger, metrics

logger = structlog.get_logger(__name__)


class PaymentOrchestrator:
    """
    Mode-parameterized state machine over the gateway resources.

    Holds no state between calls; run one instance per context or share one
    instance across contexts, both are safe for sequential use.
    """

    def __init__(
        self,
        resources: GatewayResources,
        logger: Optional[PaymentLogger] = None,
        settings: Optional[GatewaySettings] = None,
        validator: Optional[ResultValidator] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            resources: Resource clients for the five gateway resources
            logger: Optional audit sink; absent means structlog output only
            settings: Optional settings supplying success code and request source
            validator: Optional result validator override
        """
        self.resources = resources
        self.settings = settings
        self.audit = AuditLog(logger)
        success_code = settings.success_response_code if settings else DEFAULT_SUCCESS_CODE
        self.validator = validator or ResultValidator(success_code, audit=self.audit)

    def process_payment(
        self, context: ProcessingContext, capture_immediately: bool = True
    ) -> bool:
        """
        Run the full processing sequence for one context.

        Args:
            context: Processing context, mutated in place
            capture_immediately: Charge now instead of only holding funds

        Returns:
            bool: True when every step succeeded
        """
        with structlog.contextvars.bound_contextvars(
            process_id=uuid.uuid4().hex, operation="process_payment"
        ):
            self._clear_failure(context)
            try:
                context.validate()
            except ValidationFailed as exc:
                self._record_failure(context, exc)
                self._count("process_payment", None, "failed")
                return False

            mode = select_mode(context, capture_immediately)
            context.mode = mode
            self.audit.log("Process payment with following data", context.to_dict())
            logger.info(
                "processing_payment",
                mode=mode.value,
                basket_amount=context.basket_amount,
                authorized_amount=context.authorized_amount,
                currency=context.currency,
                capture_immediately=capture_immediately,
            )

            try:
                self._ensure_client(context)
                self._ensure_payment_method(context)

                if mode is ProcessingMode.DIRECT:
                    self._charge_basket(context)
                elif mode is ProcessingMode.PREAUTHORIZE:
                    self._preauthorize(context)
                    if capture_immediately:
                        self._capture_preauthorization(context)
                else:
                    self._reconcile(context)
            except PaymentError as exc:
                self._record_failure(context, exc)
                self._count("process_payment", mode, "failed")
                return False

            self._count("process_payment", mode, "succeeded")
            logger.info(
                "payment_processed",
                mode=mode.value,
                client_id=context.client_id,
                payment_method_id=context.payment_method_id,
                transaction_id=context.transaction_id,
                preauthorization_id=context.preauthorization_id,
            )
            return True

    def capture(self, context: ProcessingContext) -> bool:
        """
        Capture a stored preauthorization with one transaction.

        Requires preauthorization_id, basket_amount and currency, and no
        transaction_id yet.

        Returns:
            bool: True when the capture transaction is closed
        """
        with structlog.contextvars.bound_contextvars(
            process_id=uuid.uuid4().hex, operation="capture"
        ):
            self._clear_failure(context)
            try:
                self._require_capturable(context)
                self._capture_preauthorization(context)
            except PaymentError as exc:
                self._record_failure(context, exc)
                self._count("capture", ProcessingMode.PREAUTHORIZE, "failed")
                return False

            self._count("capture", ProcessingMode.PREAUTHORIZE, "succeeded")
            return True

    @staticmethod
    def _require_capturable(context: ProcessingContext) -> None:
        if context.transaction_id:
            raise ValidationFailed(
                "The preauthorization was already captured.", field="transaction_id"
            )
        if not context.preauthorization_id:
            raise ValidationFailed(
                "The parameter preauthorization_id is missing.", field="preauthorization_id"
            )
        amount = context.basket_amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValidationFailed(
                "The parameter basket_amount is not a non-negative integer.",
                field="basket_amount",
            )
        if not isinstance(context.currency, str) or not context.currency:
            raise ValidationFailed(
                "The parameter currency is missing.", field="currency"
            )

    def _ensure_client(self, context: ProcessingContext) -> str:
        if context.client_id:
            self.audit.log(f"Client using: {context.client_id}")
            logger.info("client_reused", client_id=context.client_id)
            return context.client_id

        context.client_id = self._create(
            ResourceKind.CLIENT,
            self.resources.clients,
            context,
            {"email": context.customer_email, "description": context.description},
        )
        logger.info("client_created", client_id=context.client_id)
        return context.client_id

    def _ensure_payment_method(self, context: ProcessingContext) -> str:
        # stored ids are trusted without a liveness fetch; callers clear stale ones
        if context.payment_method_id:
            self.audit.log(f"Payment using: {context.payment_method_id}")
            logger.info("payment_method_reused", payment_method_id=context.payment_method_id)
            return context.payment_method_id

        context.payment_method_id = self._create(
            ResourceKind.PAYMENT_METHOD,
            self.resources.payments,
            context,
            {"token": context.token, "client": context.client_id},
        )
        logger.info("payment_method_created", payment_method_id=context.payment_method_id)
        return context.payment_method_id

    def _charge_basket(self, context: ProcessingContext) -> None:
        context.transaction_id = self._create(
            ResourceKind.TRANSACTION,
            self.resources.transactions,
            context,
            self._charge_params(context, context.basket_amount),
        )
        logger.info(
            "transaction_created",
            transaction_id=context.transaction_id,
            amount=context.basket_amount,
        )

    def _preauthorize(self, context: ProcessingContext) -> None:
        if context.preauthorization_id is not None:
            self.audit.log(f"Preauthorization using: {context.preauthorization_id}")
            logger.info(
                "preauthorization_reused", preauthorization_id=context.preauthorization_id
            )
            return

        amount = preauthorization_amount(context)
        self._create(
            ResourceKind.PREAUTHORIZATION,
            self.resources.preauthorizations,
            context,
            {
                "amount": amount,
                "currency": context.currency,
                "description": context.description,
                "payment": context.payment_method_id,
                "client": context.client_id,
            },
        )
        context.preauthorization_id = extract_preauthorization_id(context.last_result)
        logger.info(
            "preauthorization_created",
            preauthorization_id=context.preauthorization_id,
            amount=amount,
        )

    def _capture_preauthorization(self, context: ProcessingContext) -> None:
        context.transaction_id = self._create(
            ResourceKind.TRANSACTION,
            self.resources.transactions,
            context,
            {
                "amount": context.basket_amount,
                "currency": context.currency,
                "description": context.description,
                "preauthorization": context.preauthorization_id,
                "source": self._source(context),
            },
        )
        logger.info(
            "preauthorization_captured",
            transaction_id=context.transaction_id,
            preauthorization_id=context.preauthorization_id,
            amount=context.basket_amount,
        )

    def _reconcile(self, context: ProcessingContext) -> None:
        plan = plan_adjustment(context.authorized_amount, context.basket_amount)
        metrics.reconciliation_adjustments_total.labels(action=plan.action.value).inc()
        logger.info(
            "reconciliation_planned",
            action=plan.action.value,
            amount=plan.amount,
            transaction_id=context.transaction_id,
        )

        if plan.action is AdjustmentAction.REFUND:
            context.refund_id = self._create(
                ResourceKind.REFUND,
                self.resources.refunds,
                context,
                {
                    "transactionId": context.transaction_id,
                    "amount": plan.amount,
                    "description": context.description,
                },
            )
            logger.info("refund_created", refund_id=context.refund_id, amount=plan.amount)
        elif plan.action is AdjustmentAction.TOP_UP:
            context.top_up_transaction_id = self._create(
                ResourceKind.TRANSACTION,
                self.resources.transactions,
                context,
                self._charge_params(context, plan.amount),
            )
            logger.info(
                "top_up_transaction_created",
                transaction_id=context.top_up_transaction_id,
                amount=plan.amount,
            )
        else:
            self.audit.log(f"Nothing to reconcile for transaction: {context.transaction_id}")

    def _charge_params(self, context: ProcessingContext, amount: int) -> Dict[str, Any]:
        return {
            "amount": amount,
            "currency": context.currency,
            "description": context.description,
            "payment": context.payment_method_id,
            "client": context.client_id,
            "source": self._source(context),
        }

    def _source(self, context: ProcessingContext) -> Optional[str]:
        if context.source:
            return context.source
        return self.settings.source if self.settings else None

    def _create(
        self,
        kind: ResourceKind,
        client: GatewayResourceClient,
        context: ProcessingContext,
        params: Dict[str, Any],
    ) -> str:
        """Issue one create, keep the raw envelope on the context, then judge it."""
        envelope = client.create(params)
        context.last_result = envelope
        self.audit.log(f"{kind.value} API Response", envelope)
        return self.validator.validate(envelope, kind)

    @staticmethod
    def _clear_failure(context: ProcessingContext) -> None:
        context.error_code = None
        context.response_code = None
        context.error_detail = None

    def _record_failure(self, context: ProcessingContext, exc: PaymentError) -> None:
        context.error_code = exc.reason_code
        context.response_code = getattr(exc, "response_code", None)
        context.error_detail = exc.field if isinstance(exc, ValidationFailed) else exc.message

        if isinstance(exc, ValidationFailed):
            self.audit.log(exc.message, context.to_dict())
        else:
            self.audit.log(
                f"Exception thrown from gateway wrapper. Code: {exc.reason_code.value} "
                f"Message: {exc.message}",
                self._failure_detail(exc),
            )
        logger.warning(
            "payment_step_failed",
            reason_code=exc.reason_code.value,
            response_code=context.response_code,
            detail=context.error_detail,
        )

    @staticmethod
    def _failure_detail(exc: PaymentError) -> Any:
        if isinstance(exc, InvalidResult):
            return exc.envelope
        if isinstance(exc, GatewayUnreachable):
            return {"resource": exc.resource, "error": repr(exc.original_error)}
        return None

    @staticmethod
    def _count(operation: str, mode: Optional[ProcessingMode], outcome: str) -> None:
        metrics.payment_processing_total.labels(
            operation=operation,
            mode=mode.value if mode else "none",
            outcome=outcome,
        ).inc()
