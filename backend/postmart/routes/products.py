# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/postmart/routes/products.py
"""
Product catalog routes.

- Reads are public and always scoped to a location (location_id query param).
- Writes require an employee session; stock changes land at the
  employee's location.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_employee
from ..models import Product
from ..services import products_service
from ..services.store_adapter import StoreFailure, get_store
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    parse_amount_cents,
    parse_quantity,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price_cents", "image"},
    required_on_create={"name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _parse_product_payload(payload: dict, *, partial: bool) -> tuple[dict, int | None]:
    """
    Split the API payload into a validated product patch and an optional
    stock quantity. The API speaks decimal "price"; the model stores cents.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    body = dict(payload)

    quantity = None
    if "quantity" in body:
        quantity = parse_quantity(body.pop("quantity"), minimum=0)

    if "price_cents" in body:
        raise ValidationError("Field not allowed: price_cents")
    if "price" in body:
        body["price_cents"] = parse_amount_cents(body.pop("price"))
    elif not partial:
        raise ValidationError("Missing required fields: price")

    patch = validate_payload(model=Product, payload=body, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch, quantity


@products_bp.get("")
def list_products():
    """
    List products stocked at a location.

    Query params:
    - location_id: str (required)
    """
    try:
        return products_service.list_products(request.args.get("location_id", ""))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        product = products_service.get_product(product_id, request.args.get("location_id", ""))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"status": "success", "product": product}


@products_bp.post("")
@require_auth
@require_employee
def create_product_route():
    """
    Create a new product and stock it at the employee's location.

    Body: {"name", "price", "description"?, "image"?, "quantity"?}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch, quantity = _parse_product_payload(payload, partial=False)
        created = products_service.create_product(
            get_store(),
            patch=patch,
            employee=g.principal,
            quantity=quantity or 0,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreFailure:
        current_app.logger.exception("Failed to create product")
        return {"error": "Service temporarily unavailable"}, 503

    return {"status": "success", "message": "Product created successfully", "product": created}, 201


@products_bp.put("/<product_id>")
@require_auth
@require_employee
def update_product_route(product_id: str):
    """Update product fields and, optionally, the stock count at the employee's location."""
    payload = request.get_json(silent=True) or {}

    try:
        patch, quantity = _parse_product_payload(payload, partial=True)
        updated = products_service.update_product(
            get_store(),
            product_id=product_id,
            patch=patch,
            employee=g.principal,
            quantity=quantity,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except StoreFailure:
        current_app.logger.exception("Failed to update product")
        return {"error": "Service temporarily unavailable"}, 503

    return {"status": "success", "message": "Product updated successfully", "product": updated}


@products_bp.delete("/<product_id>")
@require_auth
@require_employee
def delete_product_route(product_id: str):
    """Delete a product. Products with order history return 409."""
    try:
        products_service.delete_product(get_store(), product_id=product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StoreFailure:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Service temporarily unavailable"}, 503

    return {"status": "success", "message": "Product deleted successfully", "product": {"product_id": product_id}}
