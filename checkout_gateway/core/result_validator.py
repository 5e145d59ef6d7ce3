"""
Result validator - judges raw gateway response envelopes.

The gateway answers in two shapes:
- flat:   {"id": "tran_...", "status": "closed", "response_code": 20000}
- nested: {"data": {"id": "tran_...", "response_code": 20000, ...}}

A response only counts as success when it proves the resource exists
(an id is present), carries no failing response code, and, for
transactions, reports the money as actually moved (status "closed").
"""
from typing import Any, Mapping, Optional

import structlog

from checkout_gateway.domain.errors import (
    InvalidId,
    InvalidOrderState,
    InvalidResponseCode,
    InvalidResult,
    NotIssued,
    UnknownError,
)
from checkout_gateway.integrations.resources import ResourceKind
from checkout_gateway.monitoring import AuditLog, metrics

logger = structlog.get_logger(__name__)

DEFAULT_SUCCESS_CODE = 20000


def _nested(envelope: Any) -> Mapping[str, Any]:
    if isinstance(envelope, Mapping):
        data = envelope.get("data")
        if isinstance(data, Mapping):
            return data
    return {}


def _top(envelope: Any) -> Mapping[str, Any]:
    return envelope if isinstance(envelope, Mapping) else {}


def envelope_id(envelope: Any) -> Optional[str]:
    """Id at the top level or under ``data``; plain objects may carry an ``id`` attribute."""
    for candidate in (_top(envelope).get("id"), _nested(envelope).get("id")):
        if candidate not in (None, ""):
            return str(candidate)
    if not isinstance(envelope, Mapping):
        candidate = getattr(envelope, "id", None)
        if candidate not in (None, ""):
            return str(candidate)
    return None


def envelope_status(envelope: Any) -> Optional[str]:
    status = _top(envelope).get("status")
    if status is None:
        status = _nested(envelope).get("status")
    return status


def extract_preauthorization_id(envelope: Any) -> Optional[str]:
    """
    Preauthorization creates answer with a transaction that embeds the hold.

    The hold's own id lives under ``preauthorization``; fall back to the
    envelope id when the gateway returned the preauthorization itself.
    """
    for scope in (_top(envelope), _nested(envelope)):
        preauthorization = scope.get("preauthorization")
        if isinstance(preauthorization, Mapping) and preauthorization.get("id"):
            return str(preauthorization["id"])
    return envelope_id(envelope)


class ResultValidator:
    """Normalizes and judges one envelope per call."""

    def __init__(
        self,
        success_code: int = DEFAULT_SUCCESS_CODE,
        audit: Optional[AuditLog] = None,
    ) -> None:
        self.success_code = success_code
        self.audit = audit or AuditLog()

    def validate(self, envelope: Any, kind: ResourceKind) -> str:
        """
        Judge an envelope for the given resource kind.

        Args:
            envelope: Raw gateway response
            kind: Resource kind the envelope was returned for

        Returns:
            str: Id of the created resource

        Raises:
            InvalidResponseCode: A response code is present and not the success code
            InvalidId: No id anywhere, nothing was created
            InvalidOrderState: Transaction status is "open"
            UnknownError: Transaction status is anything else or missing
            NotIssued: Transaction envelope is not a mapping
        """
        try:
            resource_id = self._judge(envelope, kind)
        except InvalidResult as exc:
            metrics.gateway_results_total.labels(
                resource=kind.value, outcome=exc.reason_code.value
            ).inc()
            logger.warning(
                "gateway_result_rejected",
                resource=kind.value,
                reason_code=exc.reason_code.value,
                response_code=exc.response_code,
            )
            raise

        metrics.gateway_results_total.labels(resource=kind.value, outcome="ok").inc()
        logger.info("gateway_result_accepted", resource=kind.value, resource_id=resource_id)
        return resource_id

    def _judge(self, envelope: Any, kind: ResourceKind) -> str:
        for scope in (_nested(envelope), _top(envelope)):
            if "response_code" not in scope or scope["response_code"] is None:
                continue
            code = scope["response_code"]
            if code != self.success_code:
                code = code or 0
                self.audit.log(f"An Error occured: {code}", envelope)
                raise InvalidResponseCode(
                    "Invalid ResponseCode", kind.value, envelope, response_code=code
                )

        resource_id = envelope_id(envelope)
        if resource_id is None:
            self.audit.log(f"No {kind.value} created.", envelope)
            raise InvalidId("Invalid Id", kind.value, envelope)
        self.audit.log(f"{kind.value} created.", envelope)

        if kind is not ResourceKind.TRANSACTION:
            return resource_id

        if not isinstance(envelope, Mapping):
            self.audit.log(f"{kind.value} could not be issued.", envelope)
            raise NotIssued(f"{kind.value} could not be issued.", kind.value, envelope)

        status = envelope_status(envelope)
        if status == "closed":
            return resource_id
        if status == "open":
            # issued, but the money is still pending
            self.audit.log("Status is open.", envelope)
            raise InvalidOrderState("Invalid Orderstate", kind.value, envelope)

        self.audit.log("Unknown error.", envelope)
        raise UnknownError("Unknown Error", kind.value, envelope)
