"""Test fixtures for the order service tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from order_service.config import Settings
from order_service.metrics import PrometheusMetrics
from order_service.producer import OrderProducer
from order_service.schemas import CreateOrderItemRequest
from order_service.server import create_app
from order_service.service import OrderService
from order_service.store import InMemoryOrderStore


class FakeClock:
    """Clock that advances one second on every read."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    """Deterministic, strictly increasing clock."""
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    """Create an empty in-memory order store."""
    return InMemoryOrderStore()


@pytest.fixture
def metrics():
    """Create a metrics sink with its own registry."""
    return PrometheusMetrics()


@pytest.fixture
def service(store, metrics, clock):
    """Create an order service without event publishing.

    Returns:
        OrderService: Service wired to the in-memory store and fresh metrics.
    """
    return OrderService(store=store, metrics=metrics, clock=clock)


@pytest.fixture
def laptop_items():
    """Items of the reference order: one laptop and two mice."""
    return [
        CreateOrderItemRequest(product_name="Laptop", quantity=1, price=Decimal("999.99")),
        CreateOrderItemRequest(product_name="Mouse", quantity=2, price=Decimal("29.99")),
    ]


@pytest.fixture
def test_order(service, laptop_items):
    """Create a persisted test order.

    Returns:
        Order: The reference order for customer ``cust-12345``.
    """
    return service.create_order("cust-12345", laptop_items)


@pytest.fixture
def test_producer(mocker):
    """Create an order producer whose Kafka client is mocked.

    Returns:
        OrderProducer: A producer pointing to localhost with a MagicMock client.
    """
    mocker.patch("order_service.producer.Producer")
    return OrderProducer("localhost:9092")


@pytest.fixture
def settings():
    """Settings with Kafka disabled."""
    return Settings()


@pytest.fixture
def test_client(settings, store, metrics):
    """Create a test client for a freshly built app."""
    app = create_app(settings=settings, store=store, metrics=metrics)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def log_records():
    """Capture loguru records emitted while the test runs.

    Returns:
        list[dict]: Loguru record dicts, in emission order.
    """
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(sink_id)
