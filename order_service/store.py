"""Order persistence: the store protocol and an in-process implementation."""

import itertools
import threading
from collections import Counter
from collections.abc import Collection
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from pydantic import ValidationError

from .errors import PersistenceError
from .schemas import NewOrder, Order, OrderItem, OrderStatus


class OrderStore(Protocol):
    """Persistence collaborator used by the order service."""

    def create(self, order: NewOrder) -> Order:
        """Persist an order and its items atomically, assigning ids."""
        ...

    def get_by_id(self, order_id: int) -> Optional[Order]:
        ...

    def list_paged(self, offset: int, limit: int) -> list[Order]:
        """Return orders newest first, skipping ``offset`` and taking ``limit``."""
        ...

    def update_status(self, order_id: int, status: OrderStatus, timestamp: datetime) -> Optional[Order]:
        ...

    def count(self, excluding: Collection[OrderStatus] = ()) -> int:
        ...

    def group_count_by_status(self) -> dict[OrderStatus, int]:
        ...

    def sum_revenue(self, excluding: OrderStatus = OrderStatus.Cancelled) -> Decimal:
        ...

    def ping(self) -> bool:
        ...


class InMemoryOrderStore:
    """Thread-safe order store kept in process memory.

    Orders are copied on the way in and out, so callers never hold
    references into the store.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._orders: dict[int, Order] = {}
        self._order_ids = itertools.count(1)
        self._item_ids = itertools.count(1)

    def create(self, order: NewOrder) -> Order:
        with self._lock:
            order_id = next(self._order_ids)
            try:
                record = Order(
                    id=order_id,
                    customer_id=order.customer_id,
                    status=order.status,
                    created_at=order.created_at,
                    updated_at=None,
                    total_amount=order.total_amount,
                    items=[
                        OrderItem(
                            id=next(self._item_ids),
                            order_id=order_id,
                            product_name=item.product_name,
                            quantity=item.quantity,
                            price=item.price,
                        )
                        for item in order.items
                    ],
                )
            except ValidationError as e:
                raise PersistenceError(f"Could not store order for customer {order.customer_id}: {e}") from e
            # Order and items become visible together
            self._orders[order_id] = record
            return record.model_copy(deep=True)

    def get_by_id(self, order_id: int) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return order.model_copy(deep=True) if order else None

    def list_paged(self, offset: int, limit: int) -> list[Order]:
        with self._lock:
            ordered = sorted(self._orders.values(), key=lambda o: (o.created_at, o.id), reverse=True)
            return [o.model_copy(deep=True) for o in ordered[offset : offset + limit]]

    def update_status(self, order_id: int, status: OrderStatus, timestamp: datetime) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            updated = order.model_copy(update={"status": status, "updated_at": timestamp}, deep=True)
            self._orders[order_id] = updated
            return updated.model_copy(deep=True)

    def count(self, excluding: Collection[OrderStatus] = ()) -> int:
        with self._lock:
            return sum(1 for o in self._orders.values() if o.status not in excluding)

    def group_count_by_status(self) -> dict[OrderStatus, int]:
        with self._lock:
            return dict(Counter(o.status for o in self._orders.values()))

    def sum_revenue(self, excluding: OrderStatus = OrderStatus.Cancelled) -> Decimal:
        with self._lock:
            return sum((o.total_amount for o in self._orders.values() if o.status != excluding), Decimal("0"))

    def ping(self) -> bool:
        return True
