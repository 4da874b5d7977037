from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


ORDER_STATUS_PLACED = "PLACED"
ORDER_STATUS_CANCELLED = "CANCELLED"


class Order(db.Model):
    """
    Order header, written once per successful checkout.

    Rows are inserted by services.order_service inside the same transaction
    as their items and the matching inventory reservations. After that only
    the status fields change.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("total_price_cents >= 0", name="ck_orders_total_non_negative"),
        db.Index("ix_orders_customer_created", "customer_id", "created_at"),
        db.Index("ix_orders_location_created", "location_id", "created_at"),
    )

    order_id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.customer_id"), nullable=False)
    location_id = db.Column(db.String(36), db.ForeignKey("locations.location_id"), nullable=False)

    # Sum of quantity * unit_price over the items, in cents
    # 64-bit: a full cart at the price ceiling overflows a 32-bit integer
    total_price_cents = db.Column(db.BigInteger, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_PLACED, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.line_number",
    )
    location = db.relationship("Location")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "location_id": self.location_id,
            "total_price": cents_to_amount(self.total_price_cents),
            "total_price_cents": self.total_price_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """One cart line of an order, priced as it was at checkout."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_order_items_price_non_negative"),
        db.UniqueConstraint("order_id", "line_number", name="uq_order_items_order_line"),
    )

    order_item_id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(
        db.String(36),
        db.ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.String(36), db.ForeignKey("products.product_id"), nullable=False, index=True)

    # Position in the submitted cart (1-based)
    line_number = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.BigInteger, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "order_item_id": self.order_item_id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "line_number": self.line_number,
            "quantity": self.quantity,
            "unit_price": cents_to_amount(self.unit_price_cents),
            "unit_price_cents": self.unit_price_cents,
            "line_total": cents_to_amount(self.quantity * self.unit_price_cents),
        }
