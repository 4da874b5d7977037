# Overview: Inventory ledger; atomic stock reservation and release per (product, location).

"""
postmart Inventory Invariants (authoritative)

- InventoryRecord.quantity is never negative.
- A missing record is zero stock; the first stock-in creates it.
- Decrements only happen through reserve(): ONE conditional UPDATE
  ("... WHERE quantity >= :quantity"). The affected-row count is the
  witness: 1 = reserved, 0 = insufficient stock and nothing changed.
  The database's row lock on that UPDATE is what keeps two concurrent
  checkouts from both spending the same units; no application lock exists.
- get_available() is a point-in-time read. Never read-then-write with it.
- Nothing here caches quantities.
"""

from __future__ import annotations

from .store_adapter import StoreAdapter
from ..validation import NotFoundError, ValidationError, parse_quantity


_RESERVE_SQL = """
UPDATE inventory_records
   SET quantity = quantity - :quantity,
       updated_at = CURRENT_TIMESTAMP
 WHERE product_id = :product_id
   AND location_id = :location_id
   AND quantity >= :quantity
"""

_RELEASE_SQL = """
INSERT INTO inventory_records (product_id, location_id, quantity, created_at, updated_at)
VALUES (:product_id, :location_id, :quantity, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
ON CONFLICT (product_id, location_id)
DO UPDATE SET quantity = inventory_records.quantity + excluded.quantity,
              updated_at = CURRENT_TIMESTAMP
"""

_SET_QUANTITY_SQL = """
INSERT INTO inventory_records (product_id, location_id, quantity, created_at, updated_at)
VALUES (:product_id, :location_id, :quantity, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
ON CONFLICT (product_id, location_id)
DO UPDATE SET quantity = excluded.quantity,
              updated_at = CURRENT_TIMESTAMP
"""

_AVAILABLE_SQL = """
SELECT quantity
  FROM inventory_records
 WHERE product_id = :product_id
   AND location_id = :location_id
"""

_PRODUCT_EXISTS_SQL = "SELECT product_id FROM products WHERE product_id = :product_id"

_LOCATION_EXISTS_SQL = "SELECT location_id FROM locations WHERE location_id = :location_id"


class InsufficientStock(Exception):
    """Requested quantity exceeds what the location holds; nothing was changed."""

    def __init__(self, product_id: str, location_id: str, requested: int):
        super().__init__(f"Insufficient stock for product {product_id}")
        self.product_id = product_id
        self.location_id = location_id
        self.requested = requested

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "location_id": self.location_id,
            "requested_quantity": self.requested,
        }


def _key(product_id: str, location_id: str) -> dict:
    if not product_id or not location_id:
        raise ValidationError("product_id and location_id required")
    return {"product_id": product_id, "location_id": location_id}


def reserve(store: StoreAdapter, product_id: str, location_id: str, quantity: int) -> None:
    """Atomically check-and-decrement; raises InsufficientStock when short."""
    params = _key(product_id, location_id)
    params["quantity"] = parse_quantity(quantity)

    result = store.execute(_RESERVE_SQL, params)
    if result.row_count != 1:
        raise InsufficientStock(product_id, location_id, params["quantity"])


def release(store: StoreAdapter, product_id: str, location_id: str, quantity: int) -> None:
    """Atomically increment (stock-in, cancellation); creates the record if absent."""
    params = _key(product_id, location_id)
    params["quantity"] = parse_quantity(quantity)
    store.execute(_RELEASE_SQL, params)


def set_quantity(store: StoreAdapter, product_id: str, location_id: str, quantity: int) -> None:
    """Manual stock correction to an absolute count."""
    params = _key(product_id, location_id)
    params["quantity"] = parse_quantity(quantity, minimum=0)
    store.execute(_SET_QUANTITY_SQL, params)


def get_available(store: StoreAdapter, product_id: str, location_id: str) -> int:
    result = store.execute(_AVAILABLE_SQL, _key(product_id, location_id))
    quantity = result.scalar()
    return int(quantity) if quantity is not None else 0


def product_exists(store: StoreAdapter, product_id: str) -> bool:
    return store.execute(_PRODUCT_EXISTS_SQL, {"product_id": product_id}).first() is not None


def location_exists(store: StoreAdapter, location_id: str) -> bool:
    return store.execute(_LOCATION_EXISTS_SQL, {"location_id": location_id}).first() is not None


def adjust(store: StoreAdapter, product_id: str, location_id: str, delta: int) -> int:
    """
    Apply a signed stock movement and return the new quantity.

    Positive deltas release, negative deltas reserve. Runs in its own
    transaction unless the caller already holds one.
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")
    if delta == 0:
        raise ValidationError("delta must be non-zero")

    with store.transaction():
        if not product_exists(store, product_id):
            raise NotFoundError("Product not found")
        if not location_exists(store, location_id):
            raise NotFoundError("Location not found")
        if delta > 0:
            release(store, product_id, location_id, delta)
        else:
            reserve(store, product_id, location_id, -delta)
        return get_available(store, product_id, location_id)
