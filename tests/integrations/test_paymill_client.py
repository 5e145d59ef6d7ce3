"""
Tests for the gateway HTTP transport and resource clients.

Uses httpx.MockTransport, no network access.
"""
from typing import Callable, List
from urllib.parse import parse_qs

import httpx
import pytest

from checkout_gateway.core import PaymentOrchestrator
from checkout_gateway.domain import GatewayUnreachable, ProcessingContext
from checkout_gateway.integrations import (
    GatewayResourceClient,
    GatewayResources,
    PaymillTransport,
    RefundsResource,
)


def build_resources(
    settings, handler: Callable[[httpx.Request], httpx.Response]
) -> GatewayResources:
    client = httpx.Client(
        base_url=settings.api_url,
        auth=(settings.private_key, ""),
        transport=httpx.MockTransport(handler),
    )
    return GatewayResources.from_settings(settings, client=client)


def form(request: httpx.Request) -> dict:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


class TestPaymillTransport:
    """Test suite for PaymillTransport."""

    @pytest.mark.unit
    def test_create_posts_form_and_returns_body(self, test_settings) -> None:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"id": "client_1"}, "mode": "test"})

        resources = build_resources(test_settings, handler)
        body = resources.clients.create({"email": "a@b.c", "description": None})

        assert body == {"data": {"id": "client_1"}, "mode": "test"}
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/v2/clients"
        assert form(seen[0]) == {"email": "a@b.c"}
        assert seen[0].headers["authorization"].startswith("Basic ")

    @pytest.mark.unit
    def test_error_body_is_returned_not_raised(self, test_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "Token invalid", "response_code": 40000})

        resources = build_resources(test_settings, handler)

        assert resources.payments.create({"token": "tok", "client": "c1"}) == {
            "error": "Token invalid",
            "response_code": 40000,
        }

    @pytest.mark.unit
    def test_connection_error_is_unreachable(self, test_settings) -> None:
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        resources = build_resources(test_settings, handler)

        with pytest.raises(GatewayUnreachable) as exc_info:
            resources.transactions.create({"amount": 1000})

        assert exc_info.value.resource == "Transaction"
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)
        assert len(calls) == 1

    @pytest.mark.unit
    def test_non_json_body_is_unreachable(self, test_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        resources = build_resources(test_settings, handler)

        with pytest.raises(GatewayUnreachable, match="HTTP 502"):
            resources.clients.create({"email": "a@b.c"})

    @pytest.mark.unit
    def test_fetch_retries_transport_failures(self, test_settings) -> None:
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"data": {"id": "pay_1"}})

        resources = build_resources(test_settings, handler)

        assert resources.payments.fetch("pay_1") == {"data": {"id": "pay_1"}}
        assert len(calls) == 3
        assert calls[0].method == "GET"
        assert calls[0].url.path == "/v2/payments/pay_1"

    @pytest.mark.unit
    def test_fetch_gives_up_after_configured_attempts(self, test_settings) -> None:
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("down", request=request)

        resources = build_resources(test_settings, handler)

        with pytest.raises(GatewayUnreachable):
            resources.payments.fetch("pay_1")
        assert len(calls) == test_settings.fetch_retry_attempts

    @pytest.mark.unit
    def test_injected_client_is_not_closed(self, test_settings) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))

        with PaymillTransport(test_settings, client=client):
            pass

        assert not client.is_closed

    @pytest.mark.unit
    def test_owned_client_uses_settings(self, test_settings) -> None:
        transport = PaymillTransport(test_settings)
        try:
            assert str(transport._client.base_url) == "https://gateway.test/v2/"
        finally:
            transport.close()


class TestRefundsResource:
    """Refunds are posted against the transaction they reverse."""

    @pytest.mark.unit
    def test_refund_path_and_body(self, test_settings) -> None:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"id": "refund_1"}})

        resources = build_resources(test_settings, handler)
        resources.refunds.create({"transactionId": "tran_1", "amount": 500})

        assert seen[0].url.path == "/v2/refunds/tran_1"
        assert form(seen[0]) == {"amount": "500"}

    @pytest.mark.unit
    def test_refund_without_transaction(self, test_settings) -> None:
        transport = PaymillTransport(
            test_settings,
            client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))),
        )

        with pytest.raises(ValueError):
            RefundsResource(transport).create({"amount": 500})


@pytest.mark.unit
def test_resources_satisfy_protocol(test_settings) -> None:
    resources = build_resources(test_settings, lambda r: httpx.Response(200, json={}))

    for resource in (
        resources.clients,
        resources.payments,
        resources.transactions,
        resources.preauthorizations,
        resources.refunds,
    ):
        assert isinstance(resource, GatewayResourceClient)


@pytest.mark.integration
def test_direct_checkout_over_http(test_settings) -> None:
    """Full direct checkout through the transport with nested envelopes."""
    responses = {
        "/v2/clients": {"data": {"id": "client_1", "response_code": 20000}},
        "/v2/payments": {"data": {"id": "pay_1", "response_code": 20000}},
        "/v2/transactions": {
            "data": {"id": "tran_1", "status": "closed", "response_code": 20000}
        },
    }
    posted: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(request)
        return httpx.Response(200, json=responses[request.url.path])

    resources = build_resources(test_settings, handler)
    context = ProcessingContext(
        token="tok_1",
        basket_amount=1000,
        currency="EUR",
        customer_name="Erika Mustermann",
        customer_email="erika@example.com",
        description="Order 10042",
    )

    assert PaymentOrchestrator(resources, settings=test_settings).process_payment(context)

    assert context.transaction_id == "tran_1"
    assert [request.url.path for request in posted] == [
        "/v2/clients",
        "/v2/payments",
        "/v2/transactions",
    ]
    assert form(posted[2]) == {
        "amount": "1000",
        "currency": "EUR",
        "description": "Order 10042",
        "payment": "pay_1",
        "client": "client_1",
        "source": "1.0.0_test-shop_4.2",
    }


@pytest.mark.integration
def test_empty_transaction_id_never_reaches_refunds(test_settings) -> None:
    posted: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(request)
        return httpx.Response(200, json={"data": {"id": "unused", "response_code": 20000}})

    resources = build_resources(test_settings, handler)
    context = ProcessingContext(
        token="tok_1",
        basket_amount=1000,
        currency="EUR",
        customer_name="Erika Mustermann",
        customer_email="erika@example.com",
        description="Order 10042",
        authorized_amount=1500,
        transaction_id="",
    )

    assert PaymentOrchestrator(resources, settings=test_settings).process_payment(context) is False

    assert context.error_detail == "transaction_id"
    assert posted == []
