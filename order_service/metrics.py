"""Prometheus metrics for order events."""

from typing import Protocol

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, generate_latest

ORDERS_CREATED = "orders_created_total"
ACTIVE_ORDERS = "orders_active_total"


class MetricsSink(Protocol):
    """Metrics collaborator; holds all counter and gauge state."""

    def increment_counter(self, name: str) -> None:
        ...

    def set_gauge(self, name: str, value: float) -> None:
        ...


class PrometheusMetrics:
    """Metrics sink backed by ``prometheus_client``.

    Each instance owns its own registry so several apps (or tests) can
    live in one process without clashing on metric names.

    Attributes:
        registry: The registry the order metrics are registered in.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters = {
            ORDERS_CREATED: Counter(ORDERS_CREATED, "Total number of orders created", registry=self.registry),
        }
        self._gauges = {
            ACTIVE_ORDERS: Gauge(ACTIVE_ORDERS, "Current number of active orders", registry=self.registry),
        }

    def increment_counter(self, name: str) -> None:
        """Increment a registered counter by one.

        Raises:
            KeyError: If no counter is registered under ``name``.
        """
        self._counters[name].inc()

    def set_gauge(self, name: str, value: float) -> None:
        """Set a registered gauge.

        Raises:
            KeyError: If no gauge is registered under ``name``.
        """
        self._gauges[name].set(value)

    def render(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)
