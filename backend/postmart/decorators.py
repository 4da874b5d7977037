# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'principal')


def require_auth(f):
    """
    Require authentication and establish the caller's Principal.

    Sets g.principal (services.session_service.Principal).

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - Account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        principal = session_service.validate_session(token)
        if principal is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.principal = principal
        return f(*args, **kwargs)

    return decorated_function


def _require_kind(kind: str):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401
            if g.principal.kind != kind:
                return jsonify({"error": "Permission denied", "required_account_type": kind}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


require_customer = _require_kind(session_service.PRINCIPAL_CUSTOMER)
require_employee = _require_kind(session_service.PRINCIPAL_EMPLOYEE)
