# backend/postmart/services/products_service.py
"""
Catalog Service

Products are global; stock is per location and only moves through
inventory_ledger. Writes are attributed to an employee and stock changes
land at that employee's location.
"""
from __future__ import annotations

from ..extensions import db
from ..models import InventoryRecord, Location, OrderItem, Product
from ..validation import ConflictError, NotFoundError, ValidationError
from . import inventory_ledger
from .session_service import Principal
from .store_adapter import StoreAdapter

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price_cents", "image"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _product_with_quantity(product: Product, quantity: int | None, location_id: str) -> dict:
    data = product.to_dict()
    data["location_id"] = location_id
    data["available_quantity"] = int(quantity or 0)
    return data


def _require_location(location_id: str) -> Location:
    if not location_id:
        raise ValidationError("location_id required")
    location = db.session.query(Location).filter_by(location_id=location_id).first()
    if location is None:
        raise NotFoundError("Location not found")
    return location


def list_products(location_id: str) -> dict:
    """
    Products stocked at a location, with the quantity on hand, ordered by name.
    """
    _require_location(location_id)

    rows = (
        db.session.query(Product, InventoryRecord.quantity)
        .join(InventoryRecord, InventoryRecord.product_id == Product.product_id)
        .filter(InventoryRecord.location_id == location_id)
        .order_by(Product.name.asc(), Product.product_id.asc())
        .all()
    )
    items = [_product_with_quantity(p, qty, location_id) for p, qty in rows]
    return {"items": items, "count": len(items)}


def get_product(product_id: str, location_id: str) -> dict:
    """Single product with the quantity available at the location (0 if not stocked)."""
    _require_location(location_id)

    row = (
        db.session.query(Product, InventoryRecord.quantity)
        .outerjoin(
            InventoryRecord,
            db.and_(
                InventoryRecord.product_id == Product.product_id,
                InventoryRecord.location_id == location_id,
            ),
        )
        .filter(Product.product_id == product_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Product not found")
    product, quantity = row
    return _product_with_quantity(product, quantity, location_id)


def create_product(
    store: StoreAdapter,
    *,
    patch: dict,
    employee: Principal,
    quantity: int = 0,
) -> dict:
    """
    Create product using a validated patch dict and stock it at the
    employee's location. Both writes commit together.
    """
    location_id = employee.require_location_id()

    with store.transaction():
        p = Product(created_by_employee_id=employee.subject_id)
        apply_product_patch(p, patch)
        store.session.add(p)
        store.session.flush()  # product row must exist before the inventory upsert

        inventory_ledger.set_quantity(store, p.product_id, location_id, quantity)
        product_id = p.product_id

    return get_product(product_id, location_id)


def update_product(
    store: StoreAdapter,
    *,
    product_id: str,
    patch: dict,
    employee: Principal,
    quantity: int | None = None,
) -> dict:
    """
    Update product fields; when quantity is given, set the absolute stock
    at the employee's location (manual count correction).
    """
    location_id = employee.require_location_id()

    with store.transaction():
        p = store.session.query(Product).filter_by(product_id=product_id).first()
        if p is None:
            raise NotFoundError("Product not found")

        apply_product_patch(p, patch)
        store.session.flush()

        if quantity is not None:
            inventory_ledger.set_quantity(store, product_id, location_id, quantity)

    return get_product(product_id, location_id)


def delete_product(store: StoreAdapter, *, product_id: str) -> bool:
    """
    Delete a product and its stock records at every location.

    Products with order history are kept: order items must keep pointing
    at a real product.
    """
    with store.transaction():
        p = store.session.query(Product).filter_by(product_id=product_id).first()
        if p is None:
            raise NotFoundError("Product not found")

        referenced = store.session.query(OrderItem.order_item_id).filter_by(product_id=product_id).first()
        if referenced:
            raise ConflictError("Product has order history and cannot be deleted")

        store.session.query(InventoryRecord).filter_by(product_id=product_id).delete(synchronize_session=False)
        store.session.delete(p)

    return True
