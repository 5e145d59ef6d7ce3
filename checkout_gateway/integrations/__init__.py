"""External gateway integrations."""
from .paymill_client import (
    ClientsResource,
    GatewayResource,
    GatewayResources,
    PaymentsResource,
    PaymillTransport,
    PreauthorizationsResource,
    RefundsResource,
    TransactionsResource,
)
from .resources import GatewayResourceClient, ResourceKind

__all__ = [
    "ClientsResource",
    "GatewayResource",
    "GatewayResourceClient",
    "GatewayResources",
    "PaymentsResource",
    "PaymillTransport",
    "PreauthorizationsResource",
    "RefundsResource",
    "ResourceKind",
    "TransactionsResource",
]
