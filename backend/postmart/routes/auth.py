# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/postmart/routes/auth.py
"""
Authentication API routes

- Customers may self-register; employees are created via the CLI.
- Login returns a bearer token for the Authorization header.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..models import Customer, Employee
from ..services import auth_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError
from ..decorators import require_auth
from ..validation import ConflictError, ValidationError, require_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

ACCOUNT_TYPES = {"customer", "employee"}


@auth_bp.post("/register")
def register_route():
    """Customer self-registration."""
    try:
        data = require_json_object(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    email = data.get("email")
    name = data.get("name")
    password = data.get("password")

    if not all(isinstance(v, str) and v.strip() for v in (email, name, password)):
        return jsonify({"error": "email, name and password required"}), 400

    try:
        customer = auth_service.create_customer(email=email, name=name, password=password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"customer": customer.to_dict()}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Body: {"identifier" | "email" | "username", "password", "account_type"}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        identifier = data.get("identifier") or data.get("email") or data.get("username")
        password = data.get("password")
        account_type = data.get("account_type", "customer")

        if not all(isinstance(v, str) and v for v in (identifier, password)):
            return jsonify({"error": "identifier and password required"}), 400
        if account_type not in ACCOUNT_TYPES:
            return jsonify({"error": "account_type must be customer or employee"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        if account_type == "customer":
            account = auth_service.authenticate_customer(identifier, password)
            if not account:
                return jsonify({"error": "Invalid credentials"}), 401
            session, token = session_service.create_session(
                customer=account, user_agent=user_agent, ip_address=ip_address
            )
        else:
            account = auth_service.authenticate_employee(identifier, password)
            if not account:
                return jsonify({"error": "Invalid credentials"}), 401
            session, token = session_service.create_session(
                employee=account, user_agent=user_agent, ip_address=ip_address
            )

        return jsonify({
            "account": account.to_dict(),
            "account_type": account_type,
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.principal.session_id)
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    principal = g.principal
    if principal.is_customer:
        account = db.session.get(Customer, principal.subject_id)
    else:
        account = db.session.get(Employee, principal.subject_id)

    return jsonify({
        "account_type": principal.kind,
        "account": account.to_dict() if account else None,
        "location_id": principal.location_id,
    }), 200
