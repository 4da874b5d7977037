from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for a single line or stock movement
MAX_QUANTITY = 1_000_000

# Order totals are stored in a signed 64-bit column
MAX_ORDER_TOTAL_CENTS = 2**63 - 1


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., cancelling a cancelled order)."""


class NotFoundError(LookupError):
    """404-level: a referenced product, location or order does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_quantity(value: Any, field: str = "quantity", *, minimum: int = 1) -> int:
    qty = parse_int(value, field)
    if qty < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def parse_amount_cents(value: Any, field: str = "price") -> int:
    """
    Convert a decimal amount (number or numeric string) to integer cents.

    Amounts must be finite, non-negative and carry at most two fractional
    digits; 5.5 -> 550, "10.00" -> 1000.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        # repr round-trips the shortest decimal, so 5.5 stays 5.5
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    # Bound the magnitude before quantize(), which fails past the context precision
    if amount > Decimal(MAX_PRICE_CENTS).scaleb(-2):
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    if amount.as_tuple().exponent < -2 and amount != amount.quantize(Decimal("0.01")):
        raise ValidationError(f"{field} must have at most 2 decimal places")

    return int((amount * 100).to_integral_value())


def cents_to_amount(cents: int | None) -> float | None:
    """Render integer cents as a two-place decimal number for JSON payloads."""
    if cents is None:
        return None
    return round(cents / 100, 2)


def require_json_object(payload: Any) -> dict:
    """Request body as a dict; a missing body is empty, arrays and scalars are rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def require_text(value: Any, field: str) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} required")
    return value.strip()


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price_cents" in patch:
        price = patch["price_cents"]
        if price is None:
            raise ValidationError("price cannot be null")
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")


def parse_cart(raw: Any, *, max_lines: int) -> list[dict]:
    """
    Validate the checkout cart shape.

    Returns one dict per submitted line, in submission order, with keys
    product_id, quantity and unit_price_cents.
    """
    if not isinstance(raw, list):
        raise ValidationError("cart must be a list")
    if not raw:
        raise ValidationError("cart must not be empty")
    if len(raw) > max_lines:
        raise ValidationError(f"cart cannot exceed {max_lines} lines")

    lines = []
    for index, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"cart line {index} must be an object")
        unknown = set(entry) - {"product_id", "quantity", "price"}
        if unknown:
            raise ValidationError(f"cart line {index}: field not allowed: {', '.join(sorted(unknown))}")
        try:
            lines.append({
                "product_id": require_text(entry.get("product_id"), "product_id"),
                "quantity": parse_quantity(entry.get("quantity")),
                "unit_price_cents": parse_amount_cents(entry.get("price")),
            })
        except ValidationError as e:
            raise ValidationError(f"cart line {index}: {e}") from None
    return lines
