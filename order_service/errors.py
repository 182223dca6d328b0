"""Exceptions raised by the order service layer."""

from typing import Any, Optional


class OrderServiceError(Exception):
    """Base class for order service failures."""


class OrderNotFoundError(OrderServiceError):
    """The requested order id does not exist."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class OrderValidationError(OrderServiceError):
    """A request was rejected before reaching the store.

    Attributes:
        errors: Field level error details, in pydantic's ``errors()`` shape.
    """

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None):
        self.errors = errors or []
        super().__init__(message)


class PersistenceError(OrderServiceError):
    """The order store could not complete a read or write."""
