"""
HTTP client for the gateway's REST resources.

Implements:
- Form-encoded POST creates, never retried (creates move money)
- GET fetches retried with exponential backoff on transport failures
- Transport failure classification into GatewayUnreachable
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from checkout_gateway.config import GatewaySettings, get_settings
from checkout_gateway.domain.errors import GatewayUnreachable
from checkout_gateway.integrations.resources import ResourceKind
from checkout_gateway.monitoring import metrics

logger = structlog.get_logger(__name__)


class PaymillTransport:
    """
    Thin wrapper around httpx for the gateway API.

    The private key is sent as the basic-auth user name. Response bodies are
    returned decoded but otherwise untouched, including error bodies: a 4xx
    with a JSON envelope is a gateway answer, not a transport failure.
    """

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            settings: Gateway settings, loaded from the environment if omitted
            client: Pre-built httpx client (tests inject a MockTransport)
        """
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=self.settings.api_url,
            auth=(self.settings.private_key, ""),
            timeout=self.settings.request_timeout,
            headers={"Accept": "application/json"},
        )

        logger.info(
            "gateway_transport_initialized",
            api_url=self.settings.api_url,
            fetch_retry_attempts=self.settings.fetch_retry_attempts,
        )

    def __enter__(self) -> "PaymillTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def post(self, path: str, data: Mapping[str, Any], resource: str) -> Any:
        """
        Create a resource. Exactly one HTTP request is made.

        Args:
            path: Resource path relative to the API base URL
            data: Form fields; None values are dropped
            resource: Resource kind, for logs and metrics

        Returns:
            Any: Decoded response body

        Raises:
            GatewayUnreachable: On transport errors or undecodable bodies
        """
        form = {key: value for key, value in data.items() if value is not None}
        return self._send("POST", path, resource, "create", data=form)

    def get(self, path: str, resource: str) -> Any:
        """
        Fetch a resource, retrying transport failures.

        Raises:
            GatewayUnreachable: When every attempt failed
        """
        retrying = Retrying(
            retry=retry_if_exception_type(GatewayUnreachable),
            stop=stop_after_attempt(self.settings.fetch_retry_attempts),
            wait=wait_exponential(multiplier=self.settings.retry_base_delay, max=8),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._send("GET", path, resource, "fetch")

    def _send(
        self,
        method: str,
        path: str,
        resource: str,
        operation: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = self._client.request(method, path, data=data)
        except httpx.HTTPError as e:
            metrics.gateway_requests_total.labels(
                resource=resource, operation=operation, outcome="unreachable"
            ).inc()
            logger.error(
                "gateway_request_failed",
                resource=resource,
                method=method,
                path=path,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise GatewayUnreachable(
                f"{resource} {operation} failed: {e}", resource=resource, original_error=e
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            metrics.gateway_requests_total.labels(
                resource=resource, operation=operation, outcome="unreachable"
            ).inc()
            logger.error(
                "gateway_response_undecodable",
                resource=resource,
                status_code=response.status_code,
            )
            raise GatewayUnreachable(
                f"{resource} {operation} returned a non-JSON body "
                f"(HTTP {response.status_code})",
                resource=resource,
                original_error=e,
            ) from e

        metrics.gateway_requests_total.labels(
            resource=resource, operation=operation, outcome="ok"
        ).inc()
        logger.debug(
            "gateway_response_received",
            resource=resource,
            method=method,
            status_code=response.status_code,
        )
        return body


class GatewayResource:
    """Create/fetch access to one REST collection."""

    endpoint: str = ""
    kind: ResourceKind

    def __init__(self, transport: PaymillTransport) -> None:
        self.transport = transport

    def create(self, params: Mapping[str, Any]) -> Any:
        return self.transport.post(self.endpoint, params, resource=self.kind.value)

    def fetch(self, resource_id: str) -> Any:
        return self.transport.get(
            f"{self.endpoint}/{resource_id}", resource=self.kind.value
        )


class ClientsResource(GatewayResource):
    endpoint = "clients"
    kind = ResourceKind.CLIENT


class PaymentsResource(GatewayResource):
    endpoint = "payments"
    kind = ResourceKind.PAYMENT_METHOD


class TransactionsResource(GatewayResource):
    endpoint = "transactions"
    kind = ResourceKind.TRANSACTION


class PreauthorizationsResource(GatewayResource):
    endpoint = "preauthorizations"
    kind = ResourceKind.PREAUTHORIZATION


class RefundsResource(GatewayResource):
    """Refunds are created against a transaction: POST refunds/{transactionId}."""

    endpoint = "refunds"
    kind = ResourceKind.REFUND

    def create(self, params: Mapping[str, Any]) -> Any:
        body = dict(params)
        transaction_id = body.pop("transactionId", None)
        if not transaction_id:
            raise ValueError("A refund needs the transactionId it reverses")
        return self.transport.post(
            f"{self.endpoint}/{transaction_id}", body, resource=self.kind.value
        )


@dataclass
class GatewayResources:
    """The five resource clients one orchestrator drives."""

    clients: Any
    payments: Any
    transactions: Any
    preauthorizations: Any
    refunds: Any
    transport: Optional[PaymillTransport] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[GatewaySettings] = None,
        client: Optional[httpx.Client] = None,
    ) -> "GatewayResources":
        """Build all resource clients over one shared transport."""
        transport = PaymillTransport(settings=settings, client=client)
        return cls(
            clients=ClientsResource(transport),
            payments=PaymentsResource(transport),
            transactions=TransactionsResource(transport),
            preauthorizations=PreauthorizationsResource(transport),
            refunds=RefundsResource(transport),
            transport=transport,
        )

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()
