"""
Gateway resource capability.

The orchestrator only ever needs two things from a gateway resource:
create one instance and fetch one by id. Both return the raw response
envelope unmodified; judging it is the result validator's job.
"""
from enum import Enum
from typing import Any, Mapping, Protocol, runtime_checkable


class ResourceKind(Enum):
    """Gateway resource kinds, valued with the names used in audit messages."""

    CLIENT = "Client"
    PAYMENT_METHOD = "Payment"
    PREAUTHORIZATION = "Preauthorization"
    TRANSACTION = "Transaction"
    REFUND = "Refund"


@runtime_checkable
class GatewayResourceClient(Protocol):
    """
    Create/fetch access to one gateway resource kind.

    Implementations perform exactly one remote call per method, never retry
    a create, and raise GatewayUnreachable for transport failures.
    """

    def create(self, params: Mapping[str, Any]) -> Any: ...

    def fetch(self, resource_id: str) -> Any: ...
