# backend/postmart/routes/inventory.py
"""
Inventory routes.

- GET is a point-in-time read of the quantity at a location.
- POST /adjust applies a signed stock movement (stock-in or manual
  correction). Employees may only adjust their own location.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_employee
from ..services import inventory_ledger
from ..services.inventory_ledger import InsufficientStock
from ..services.store_adapter import StoreFailure, get_store
from ..validation import NotFoundError, ValidationError, parse_int, require_json_object, require_text


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/<product_id>")
def get_available_route(product_id: str):
    location_id = request.args.get("location_id", "")
    if not location_id:
        return {"error": "location_id required"}, 400

    try:
        quantity = inventory_ledger.get_available(get_store(), product_id, location_id)
    except StoreFailure:
        current_app.logger.exception("Failed to read inventory")
        return {"error": "Service temporarily unavailable"}, 503

    return {"product_id": product_id, "location_id": location_id, "quantity": quantity}


@inventory_bp.post("/adjust")
@require_auth
@require_employee
def adjust_inventory_route():
    """
    Adjust stock by a signed delta.

    Body: {"product_id", "delta", "location_id"?}; location defaults to the
    employee's own.
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        own_location = g.principal.require_location_id()
        product_id = require_text(payload.get("product_id"), "product_id")
        location_id = payload.get("location_id") or own_location
        delta = parse_int(payload.get("delta"), "delta")
    except ValidationError as e:
        return {"error": str(e)}, 400

    if location_id != own_location:
        return {"error": "Permission denied", "message": "Employees may only adjust their own location"}, 403

    try:
        quantity = inventory_ledger.adjust(get_store(), product_id, location_id, delta)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientStock as e:
        return {"error": "Insufficient stock", "details": e.to_dict()}, 409
    except StoreFailure:
        current_app.logger.exception("Failed to adjust inventory")
        return {"error": "Service temporarily unavailable"}, 503

    current_app.logger.info(
        "Inventory adjusted product=%s location=%s delta=%s by employee=%s",
        product_id, location_id, delta, g.principal.subject_id,
    )
    return {"product_id": product_id, "location_id": location_id, "quantity": quantity}
