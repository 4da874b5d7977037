# Overview: Order placement engine; checkout as one atomic unit of work.

"""
Order placement protocol (authoritative)

place_order() runs inside ONE store transaction:
1. total = sum(quantity * unit_price) in integer cents, computed up front.
2. The location must exist; the order header is inserted.
3. For each cart line, in submission order:
     a. inventory_ledger.reserve() (conditional decrement);
        on failure the whole transaction aborts and InsufficientStock
        names that line's product.
     b. the order item row is inserted.
4. Commit.

Reservation and item insertion are interleaved per line so the first short
line stops the checkout before later lines reserve anything. Whatever was
already reserved in this call is undone by the rollback; callers never see
a half-applied order.

StoreFailure is never retried here. The caller decides.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..identifiers import new_id
from ..models import Order
from ..models.orders import ORDER_STATUS_CANCELLED, ORDER_STATUS_PLACED
from ..time_utils import utcnow
from ..validation import (
    MAX_ORDER_TOTAL_CENTS,
    ConflictError,
    NotFoundError,
    ValidationError,
    cents_to_amount,
)
from . import inventory_ledger
from .concurrency import lock_for_update
from .inventory_ledger import InsufficientStock
from .session_service import PermissionDeniedError, Principal
from .store_adapter import StoreAdapter


_INSERT_ORDER_SQL = """
INSERT INTO orders (order_id, customer_id, location_id, total_price_cents, status, created_at)
VALUES (:order_id, :customer_id, :location_id, :total_price_cents, :status, CURRENT_TIMESTAMP)
"""

_INSERT_ORDER_ITEM_SQL = """
INSERT INTO order_items (order_item_id, order_id, product_id, line_number, quantity, unit_price_cents)
VALUES (:order_item_id, :order_id, :product_id, :line_number, :quantity, :unit_price_cents)
"""


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    unit_price_cents: int

    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: str
    total_price_cents: int

    @property
    def total_price(self) -> Decimal:
        return Decimal(self.total_price_cents).scaleb(-2)

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "total_price": cents_to_amount(self.total_price_cents),
            "total_price_cents": self.total_price_cents,
        }


def compute_total_cents(cart: Iterable[CartLine]) -> int:
    return sum(line.subtotal_cents for line in cart)


def _validate_checkout(customer_id: str, location_id: str, cart: list[CartLine]) -> None:
    if not customer_id:
        raise ValidationError("customer_id required")
    if not location_id:
        raise ValidationError("location_id required")
    if not cart:
        raise ValidationError("cart must not be empty")

    for index, line in enumerate(cart, start=1):
        if not line.product_id:
            raise ValidationError(f"cart line {index}: product_id required")
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
            raise ValidationError(f"cart line {index}: quantity must be an integer >= 1")
        if isinstance(line.unit_price_cents, bool) or not isinstance(line.unit_price_cents, int) \
                or line.unit_price_cents < 0:
            raise ValidationError(f"cart line {index}: price must be >= 0")


def place_order(
    store: StoreAdapter,
    *,
    customer_id: str,
    location_id: str,
    cart: Iterable[CartLine],
) -> OrderConfirmation:
    """
    Create the order, its items and the stock reservations atomically.

    Raises:
        ValidationError: malformed request (before any store interaction)
        NotFoundError: location or a cart product does not exist
        InsufficientStock: first cart line the location cannot cover
        StoreFailure: the store failed; everything was rolled back
    """
    cart = list(cart)
    _validate_checkout(customer_id, location_id, cart)

    total_price_cents = compute_total_cents(cart)
    if total_price_cents > MAX_ORDER_TOTAL_CENTS:
        raise ValidationError("order total is too large")
    order_id = new_id()

    try:
        with store.transaction():
            if not inventory_ledger.location_exists(store, location_id):
                raise NotFoundError("Location not found")

            store.execute(_INSERT_ORDER_SQL, {
                "order_id": order_id,
                "customer_id": customer_id,
                "location_id": location_id,
                "total_price_cents": total_price_cents,
                "status": ORDER_STATUS_PLACED,
            })

            for line_number, line in enumerate(cart, start=1):
                try:
                    inventory_ledger.reserve(store, line.product_id, location_id, line.quantity)
                except InsufficientStock:
                    if not inventory_ledger.product_exists(store, line.product_id):
                        raise NotFoundError(f"Product {line.product_id} not found") from None
                    raise

                store.execute(_INSERT_ORDER_ITEM_SQL, {
                    "order_item_id": new_id(),
                    "order_id": order_id,
                    "product_id": line.product_id,
                    "line_number": line_number,
                    "quantity": line.quantity,
                    "unit_price_cents": line.unit_price_cents,
                })
    except InsufficientStock as e:
        current_app.logger.info(
            "Order rejected: insufficient stock product=%s location=%s requested=%s",
            e.product_id, e.location_id, e.requested,
        )
        raise

    current_app.logger.info(
        "Order placed order_id=%s customer=%s location=%s lines=%s total_cents=%s",
        order_id, customer_id, location_id, len(cart), total_price_cents,
    )
    return OrderConfirmation(order_id=order_id, total_price_cents=total_price_cents)


def can_access_order(order: Order, principal: Principal) -> bool:
    """Customers see their own orders; employees see orders at their location."""
    if principal.is_customer:
        return order.customer_id == principal.subject_id
    if principal.is_employee:
        return principal.location_id is not None and order.location_id == principal.location_id
    return False


def get_order(order_id: str, principal: Principal | None = None) -> Order:
    order = db.session.query(Order).filter_by(order_id=order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    if principal is not None and not can_access_order(order, principal):
        # Hide existence from other customers
        raise NotFoundError("Order not found")
    return order


def list_orders(
    *,
    customer_id: str | None = None,
    location_id: str | None = None,
    limit: int = 50,
) -> list[Order]:
    """Newest first; at least one filter is required."""
    if customer_id is None and location_id is None:
        raise ValidationError("customer_id or location_id required")

    query = db.session.query(Order)
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    if location_id is not None:
        query = query.filter(Order.location_id == location_id)
    return query.order_by(Order.created_at.desc(), Order.order_id.asc()).limit(limit).all()


def cancel_order(store: StoreAdapter, order_id: str, *, actor: Principal) -> Order:
    """
    Cancel a PLACED order and return its stock to the location.

    Status change and every release commit together.
    """
    with store.transaction():
        order = lock_for_update(store.session.query(Order).filter_by(order_id=order_id)).first()
        if not order:
            raise NotFoundError("Order not found")
        if not can_access_order(order, actor):
            raise PermissionDeniedError("Not allowed to cancel this order")
        if order.status != ORDER_STATUS_PLACED:
            raise ConflictError(f"Cannot cancel order with status {order.status}")

        for item in order.items:
            inventory_ledger.release(store, item.product_id, order.location_id, item.quantity)

        order.status = ORDER_STATUS_CANCELLED
        order.cancelled_at = utcnow()

    current_app.logger.info("Order cancelled order_id=%s by %s=%s", order_id, actor.kind, actor.subject_id)
    return order
