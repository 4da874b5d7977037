# Overview: Flask API routes for orders; parses checkout input and returns JSON responses.

# backend/postmart/routes/orders.py
"""
Checkout and order history routes.

- POST /api/orders requires a customer session; the customer id always
  comes from the session, never from the payload.
- Reads are limited to the owning customer or employees at the order's
  location.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_customer
from ..services import order_service
from ..services.inventory_ledger import InsufficientStock
from ..services.order_service import CartLine
from ..services.session_service import PermissionDeniedError
from ..services.store_adapter import StoreFailure, get_store
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_cart,
    require_json_object,
    require_text,
)


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

STORE_FAILURE_MESSAGE = "Order could not be completed, please retry"


@orders_bp.post("")
@require_auth
@require_customer
def place_order_route():
    """
    Place an order.

    Body: {"location_id": str, "cart": [{"product_id", "quantity", "price"}]}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        customer_id = g.principal.require_customer_id()
        location_id = require_text(payload.get("location_id"), "location_id")
        lines = parse_cart(payload.get("cart"), max_lines=current_app.config["MAX_CART_LINES"])
        cart = [CartLine(**line) for line in lines]

        confirmation = order_service.place_order(
            get_store(),
            customer_id=customer_id,
            location_id=location_id,
            cart=cart,
        )
        return jsonify({
            "status": "success",
            "message": "Order created successfully",
            "order": confirmation.to_dict(),
        }), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStock as e:
        return jsonify({"error": "Insufficient stock", "details": e.to_dict()}), 409
    except StoreFailure:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": STORE_FAILURE_MESSAGE}), 503
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    """Customers get their own orders; employees get orders at their location."""
    principal = g.principal
    limit = request.args.get("limit", default=50, type=int)
    limit = min(max(limit, 1), 200)

    try:
        if principal.is_customer:
            orders = order_service.list_orders(customer_id=principal.subject_id, limit=limit)
        else:
            orders = order_service.list_orders(location_id=principal.require_location_id(), limit=limit)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(order_id, principal=g.principal)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"order": order.to_dict(include_items=True)}), 200


@orders_bp.post("/<order_id>/cancel")
@require_auth
def cancel_order_route(order_id: str):
    """Cancel a placed order and return its stock to the location."""
    try:
        order = order_service.cancel_order(get_store(), order_id, actor=g.principal)
        return jsonify({"order": order.to_dict(include_items=True)}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except StoreFailure:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": STORE_FAILURE_MESSAGE}), 503
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500
