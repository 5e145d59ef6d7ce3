"""
Processing context - the mutable state of one checkout attempt.

A context is built from caller-supplied checkout data, mutated only by the
orchestrator while it drives the gateway, and read back by the caller to
persist the resulting identifiers. It is never reused for a second attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from checkout_gateway.domain.errors import ReasonCode, ValidationFailed


class CheckoutParameters(BaseModel):
    """
    Strict shape of the caller-supplied fields.

    Strict mode: "1000" is not an amount and True is not an integer.
    """

    model_config = ConfigDict(strict=True)

    token: str = Field(min_length=1)
    basket_amount: int = Field(ge=0)
    currency: str = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    customer_email: str = Field(min_length=1)
    description: str = Field(min_length=1)
    authorized_amount: Optional[int] = Field(default=None, ge=0)
    transaction_id: Optional[str] = Field(default=None, min_length=1)


_EXPECTED_TYPES = {
    "token": "string",
    "basket_amount": "integer",
    "currency": "string",
    "customer_name": "string",
    "customer_email": "string",
    "description": "string",
    "authorized_amount": "integer",
    "transaction_id": "string",
}


@dataclass
class ProcessingContext:
    """
    State of a single payment processing attempt.

    Amounts are integers in minor currency units (cents).

    Caller-supplied:
        token, basket_amount, currency, customer_name, customer_email,
        description, authorized_amount (reconciliation only), source,
        client_id / payment_method_id (fast checkout reuse),
        transaction_id (only when reconciling an earlier charge),
        preauthorization_id (only when capturing an earlier hold)

    Populated by the orchestrator:
        client_id, payment_method_id, transaction_id, preauthorization_id,
        refund_id, top_up_transaction_id, mode, last_result, error_code,
        response_code, error_detail
    """

    token: Any = None
    basket_amount: Any = None
    currency: Any = None
    customer_name: Any = None
    customer_email: Any = None
    description: Any = None
    authorized_amount: Any = None
    source: Optional[str] = None

    client_id: Optional[str] = None
    payment_method_id: Optional[str] = None
    transaction_id: Optional[str] = None
    preauthorization_id: Optional[str] = None
    refund_id: Optional[str] = None
    top_up_transaction_id: Optional[str] = None

    mode: Any = None
    last_result: Any = field(default=None, repr=False)
    error_code: Optional[ReasonCode] = None
    response_code: Optional[int] = None
    error_detail: Optional[str] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "currency":
            current = self.__dict__.get("currency")
            if current is not None and value != current:
                raise ValueError(
                    f"Currency of a processing context is fixed at {current!r}"
                )
        super().__setattr__(name, value)

    def validate(self) -> CheckoutParameters:
        """
        Check that every required field is present and correctly typed.

        Fields are checked in declaration order and the first failing one
        is reported.

        Returns:
            CheckoutParameters: The validated parameters

        Raises:
            ValidationFailed: Naming the failing field
        """
        data = {name: getattr(self, name) for name in _EXPECTED_TYPES}
        try:
            return CheckoutParameters.model_validate(data)
        except ValidationError as exc:
            error = exc.errors()[0]
            name = str(error["loc"][0])
            value = data.get(name)
            if value is None:
                message = f"The parameter {name} is missing."
            elif error["type"] in ("string_type", "int_type"):
                message = f"The parameter {name} is not of type {_EXPECTED_TYPES[name]}."
            else:
                message = f"The parameter {name} is invalid: {error['msg']}."
            raise ValidationFailed(message, field=name) from exc

    def to_dict(self) -> Dict[str, Any]:
        """Diagnostic snapshot with the single-use token masked."""
        snapshot = {
            f.name: getattr(self, f.name) for f in fields(self) if f.name != "last_result"
        }
        snapshot["token"] = mask_token(self.token)
        if self.mode is not None:
            snapshot["mode"] = getattr(self.mode, "value", self.mode)
        if self.error_code is not None:
            snapshot["error_code"] = self.error_code.value
        return snapshot


def mask_token(token: Any) -> Any:
    """Keep only the last four characters of a token string."""
    if not isinstance(token, str) or not token:
        return token
    return "*" * max(len(token) - 4, 0) + token[-4:]
