from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


class Location(db.Model):
    """
    A physical post-office retail site.

    Inventory is held per location; every order is placed against exactly
    one location.
    """
    __tablename__ = "locations"

    location_id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False, unique=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Location id={self.location_id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "location_id": self.location_id,
            "name": self.name,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    Products are global; how many units a location holds lives in
    InventoryRecord, never on the product row.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_name", "name"),
    )

    product_id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (API exchanges decimal amounts)
    price_cents = db.Column(db.BigInteger, nullable=False)

    image = db.Column(db.String(512), nullable=True)

    created_by_employee_id = db.Column(db.String(36), db.ForeignKey("employees.employee_id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.product_id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "description": self.description,
            "price": cents_to_amount(self.price_cents),
            "price_cents": self.price_cents,
            "image": self.image,
            "created_by_employee_id": self.created_by_employee_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryRecord(db.Model):
    """
    On-hand quantity of one product at one location.

    INVARIANT: quantity never goes negative. All writes go through
    services.inventory_ledger; the CHECK constraint is the last line.
    A missing row means zero stock.
    """
    __tablename__ = "inventory_records"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        db.Index("ix_inventory_location", "location_id"),
    )

    product_id = db.Column(
        db.String(36),
        db.ForeignKey("products.product_id", ondelete="CASCADE"),
        primary_key=True,
    )
    location_id = db.Column(
        db.String(36),
        db.ForeignKey("locations.location_id"),
        primary_key=True,
    )
    quantity = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("inventory_records", lazy=True, passive_deletes=True))
    location = db.relationship("Location")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "location_id": self.location_id,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
        }
