"""Order domain logic between the HTTP surface and the order store."""

from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union

from confluent_kafka import KafkaException
from pydantic import ValidationError

from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .errors import OrderNotFoundError, OrderValidationError
from .logger import logger
from .metrics import ACTIVE_ORDERS, ORDERS_CREATED, MetricsSink
from .producer import OrderProducer
from .schemas import (
    TERMINAL_STATUSES,
    CreateOrderItemRequest,
    CreateOrderRequest,
    NewOrder,
    NewOrderItem,
    Order,
    OrderStats,
    OrderStatus,
)
from .store import OrderStore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_total(items: Iterable[CreateOrderItemRequest]) -> Decimal:
    """Sum ``price * quantity`` over the items."""
    return sum((item.price * item.quantity for item in items), Decimal("0"))


class OrderService:
    """Creates orders, changes their status, pages through them and aggregates stats.

    Every call is an independent unit of work against the store. Counter and
    gauge state lives in the metrics sink, never here.
    """

    def __init__(
        self,
        store: OrderStore,
        metrics: MetricsSink,
        producer: Optional[OrderProducer] = None,
        clock: Callable[[], datetime] = utcnow,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self.store = store
        self.metrics = metrics
        self.producer = producer
        self.clock = clock
        self.max_page_size = max_page_size

    def list_orders(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> list[Order]:
        """Return one page of orders, newest first.

        Args:
            page: 1-based page number.
            page_size: Orders per page, clamped to ``max_page_size``.

        Returns:
            The orders on that page; empty when the page lies past the end.

        Raises:
            OrderValidationError: If ``page`` or ``page_size`` is below 1.
        """
        if page < 1 or page_size < 1:
            raise OrderValidationError(
                "page and pageSize must be positive integers",
                errors=[
                    {"loc": ["query", name], "msg": "must be >= 1", "input": value}
                    for name, value in (("page", page), ("pageSize", page_size))
                    if value < 1
                ],
            )
        page_size = min(page_size, self.max_page_size)
        return self.store.list_paged(offset=(page - 1) * page_size, limit=page_size)

    def get_order(self, order_id: int) -> Order:
        """Fetch one order with its items.

        Raises:
            OrderNotFoundError: If no order has this id.
        """
        order = self.store.get_by_id(order_id)
        if order is None:
            logger.bind(order_id=order_id).warning(f"Order {order_id} not found")
            raise OrderNotFoundError(order_id)
        return order

    def create_order(
        self,
        customer_id: str,
        items: Optional[list[Union[CreateOrderItemRequest, dict[str, Any]]]],
    ) -> Order:
        """Validate, price and persist a new order.

        The order starts ``Pending`` with its total computed from the items.
        Only after the store commits is the created counter incremented and
        the event published.

        Raises:
            OrderValidationError: If the customer id or any item is invalid.
            PersistenceError: If the store fails; nothing was created.
        """
        # A missing list is left to the min-length check
        raw_items = [i.model_dump() if isinstance(i, CreateOrderItemRequest) else i for i in items or []]
        try:
            request = CreateOrderRequest.model_validate({"customer_id": customer_id, "items": raw_items})
        except ValidationError as e:
            raise OrderValidationError("Invalid order request", errors=e.errors(include_url=False)) from e

        new_order = NewOrder(
            customer_id=request.customer_id,
            status=OrderStatus.Pending,
            created_at=self.clock(),
            total_amount=compute_total(request.items),
            items=[
                NewOrderItem(product_name=i.product_name, quantity=i.quantity, price=i.price)
                for i in request.items
            ],
        )
        order = self.store.create(new_order)

        self.metrics.increment_counter(ORDERS_CREATED)
        logger.bind(order_id=order.id, customer_id=order.customer_id).info(
            f"Created order {order.id} for customer {order.customer_id}"
        )
        self._publish("created", order)
        return order

    def update_order_status(self, order_id: int, status: Union[OrderStatus, int]) -> None:
        """Move an order to ``status`` and stamp ``updated_at``.

        Any status may follow any other. Leaving Delivered or Cancelled is
        logged as a warning but allowed.

        Raises:
            OrderValidationError: If ``status`` is not a known status code.
            OrderNotFoundError: If no order has this id; nothing changes.
        """
        try:
            status = OrderStatus(status)
        except ValueError as e:
            raise OrderValidationError(f"Unknown order status {status!r}") from e

        current = self.store.get_by_id(order_id)
        if current is None:
            logger.bind(order_id=order_id).warning(f"Order {order_id} not found")
            raise OrderNotFoundError(order_id)

        updated = self.store.update_status(order_id, status, self.clock())
        if updated is None:
            raise OrderNotFoundError(order_id)

        log = logger.bind(order_id=order_id, status=status.name)
        if not current.is_active and status != current.status:
            log.warning(f"Order {order_id} moved out of terminal status {current.status.name}")
        log.info(f"Updated order {order_id} status to {status.name}")
        self._publish("status_updated", updated)

    def get_stats(self) -> OrderStats:
        """Aggregate counts and revenue, refreshing the active orders gauge.

        Revenue excludes cancelled orders. The gauge is recomputed on every
        call rather than on a timer.
        """
        total_orders = self.store.count()
        by_status = self.store.group_count_by_status()
        total_revenue = self.store.sum_revenue(excluding=OrderStatus.Cancelled)

        active = self.store.count(excluding=TERMINAL_STATUSES)
        self.metrics.set_gauge(ACTIVE_ORDERS, active)

        return OrderStats(
            total_orders=total_orders,
            orders_by_status={OrderStatus(s).name: n for s, n in sorted(by_status.items())},
            total_revenue=total_revenue,
        )

    def _publish(self, event: str, order: Order) -> None:
        if self.producer is None:
            return
        publish = (
            self.producer.publish_order_created if event == "created" else self.producer.publish_status_updated
        )
        try:
            publish(order)
        except (BufferError, KafkaException) as e:
            # Order is already committed
            logger.bind(order_id=order.id).warning(f"Failed to publish {event} event for order {order.id}: {e}")
