"""
Pytest configuration and fixtures.
"""
from typing import Any, Callable, Dict, List, Optional

import pytest

from checkout_gateway.config import GatewaySettings
from checkout_gateway.domain import ProcessingContext
from checkout_gateway.integrations import GatewayResources


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast tests without network access")
    config.addinivalue_line("markers", "integration: tests spanning several components")


class FakeGatewayResource:
    """
    Scripted gateway resource recording every call.

    Responses are consumed in order; an exception instance is raised
    instead of returned.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses)
        self.fetch_responses: List[Any] = []
        self.calls: List[Dict[str, Any]] = []
        self.fetches: List[str] = []

    def create(self, params: Dict[str, Any]) -> Any:
        self.calls.append(dict(params))
        return self._next(self.responses)

    def fetch(self, resource_id: str) -> Any:
        self.fetches.append(resource_id)
        return self._next(self.fetch_responses)

    @staticmethod
    def _next(queue: List[Any]) -> Any:
        if not queue:
            raise AssertionError("Unexpected gateway call")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingLogger:
    """PaymentLogger keeping entries in memory."""

    def __init__(self) -> None:
        self.entries: List[tuple] = []

    def log(self, message: str, debug_detail: Optional[str] = None) -> None:
        self.entries.append((message, debug_detail))

    @property
    def messages(self) -> List[str]:
        return [message for message, _ in self.entries]


@pytest.fixture
def test_settings() -> GatewaySettings:
    """Create test settings."""
    return GatewaySettings(
        _env_file=None,
        private_key="test_private_key_0123456789",
        api_url="https://gateway.test/v2",
        source="1.0.0_test-shop_4.2",
        fetch_retry_attempts=3,
        retry_base_delay=0,
        app_env="test",
        log_level="DEBUG",
    )


@pytest.fixture
def gateway() -> GatewayResources:
    """Resource bundle made of empty fake resources."""
    return GatewayResources(
        clients=FakeGatewayResource(),
        payments=FakeGatewayResource(),
        transactions=FakeGatewayResource(),
        preauthorizations=FakeGatewayResource(),
        refunds=FakeGatewayResource(),
    )


@pytest.fixture
def audit_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def make_context() -> Callable[..., ProcessingContext]:
    """Factory for a complete direct-mode context; keyword overrides win."""

    def factory(**overrides: Any) -> ProcessingContext:
        data: Dict[str, Any] = {
            "token": "tok_1",
            "basket_amount": 1000,
            "currency": "EUR",
            "customer_name": "Erika Mustermann",
            "customer_email": "erika@example.com",
            "description": "Order 10042",
        }
        data.update(overrides)
        return ProcessingContext(**data)

    return factory
