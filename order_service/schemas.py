"""Pydantic models for orders, line items and their request/response payloads."""

from datetime import datetime
from decimal import Decimal
from enum import IntEnum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

# Decimal internally, plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class OrderStatus(IntEnum):
    """Lifecycle state of an order, encoded on the wire as its integer value."""

    Pending = 0
    Processing = 1
    Shipped = 2
    Delivered = 3
    Cancelled = 4


TERMINAL_STATUSES = frozenset({OrderStatus.Delivered, OrderStatus.Cancelled})


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting snake_case names too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


class CreateOrderItemRequest(CamelModel):
    """One requested line of a new order.

    Attributes:
        product_name (str): Name of the product, must not be blank.
        quantity (int): Number of units ordered, must be positive.
        price (Decimal): Unit price, must not be negative.
    """

    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    price: Money = Field(..., ge=0, description="Unit price")

    @field_validator("product_name")
    def validate_product_name(cls, v):
        """Reject whitespace-only product names."""
        return _not_blank(v)


class CreateOrderRequest(CamelModel):
    """Body of an order creation request.

    Attributes:
        customer_id (str): Opaque customer identifier, must not be blank.
        items (list[CreateOrderItemRequest]): Requested lines, at least one required.
    """

    customer_id: str = Field(..., min_length=1)
    items: list[CreateOrderItemRequest] = Field(..., min_length=1, description="At least one item required")

    @field_validator("customer_id")
    def validate_customer_id(cls, v):
        """Reject whitespace-only customer ids."""
        return _not_blank(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customerId": "cust-12345",
                "items": [
                    {"productName": "Laptop", "quantity": 1, "price": 999.99},
                    {"productName": "Mouse", "quantity": 2, "price": 29.99},
                ],
            }
        }
    )


class UpdateStatusRequest(CamelModel):
    """Body of a status update request; ``status`` is the integer code 0-4."""

    status: OrderStatus

    model_config = ConfigDict(json_schema_extra={"example": {"status": 2}})


class NewOrderItem(BaseModel):
    """A line item that has not been persisted yet."""

    product_name: str
    quantity: int
    price: Decimal


class NewOrder(BaseModel):
    """An order built by the service and handed to the store for persistence."""

    customer_id: str
    status: OrderStatus = OrderStatus.Pending
    created_at: datetime
    total_amount: Decimal
    items: list[NewOrderItem]


class OrderItem(CamelModel):
    """A persisted order line.

    ``order_id`` only names the owning order; the order holds its items.
    """

    id: int
    order_id: int
    product_name: str
    quantity: int
    price: Money


class Order(CamelModel):
    """A persisted customer order.

    Attributes:
        id (int): Store assigned identifier.
        customer_id (str): Customer who placed the order.
        status (OrderStatus): Current lifecycle state.
        created_at (datetime): Creation timestamp (UTC).
        updated_at (datetime | None): Timestamp of the last status change.
        total_amount (Decimal): Sum of ``price * quantity`` over the items at creation.
        items (list[OrderItem]): Line items, fixed at creation.
    """

    id: int
    customer_id: str
    status: OrderStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    total_amount: Money
    items: list[OrderItem]

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_STATUSES


class OrderStats(CamelModel):
    """Aggregate view over all orders.

    Attributes:
        total_orders (int): Number of orders ever created.
        orders_by_status (dict[str, int]): Count per status name, observed statuses only.
        total_revenue (Decimal): Sum of totals over orders that are not cancelled.
    """

    total_orders: int
    orders_by_status: dict[str, int] = Field(default_factory=dict)
    total_revenue: Money = Decimal("0")
