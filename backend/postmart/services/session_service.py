# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: The order engine and catalog need a validated principal, not a raw
session dict. validate_session() is the only place a token turns into a
Principal.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS, default 24h)
- Idle timeout (SESSION_IDLE_TIMEOUT_HOURS, default 2h)
- Revocable on logout
- Employee location is captured at login and fixed for the session
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Customer, Employee, SessionToken
from ..time_utils import as_naive_utc, utcnow
from ..validation import ValidationError


PRINCIPAL_CUSTOMER = "customer"
PRINCIPAL_EMPLOYEE = "employee"


class PermissionDeniedError(Exception):
    """The authenticated principal may not act on the target."""


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller handed to the services.

    kind is "customer" or "employee". location_id is only set for
    employees attached to a location.
    """
    kind: str
    subject_id: str
    location_id: str | None = None
    session_id: str | None = None

    @property
    def is_customer(self) -> bool:
        return self.kind == PRINCIPAL_CUSTOMER

    @property
    def is_employee(self) -> bool:
        return self.kind == PRINCIPAL_EMPLOYEE

    def require_customer_id(self) -> str:
        if not self.is_customer or not self.subject_id:
            raise ValidationError("customer context required")
        return self.subject_id

    def require_location_id(self) -> str:
        if not self.is_employee or not self.location_id:
            raise ValidationError("employee is not assigned to a location")
        return self.location_id


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config["SESSION_ABSOLUTE_TIMEOUT_HOURS"])


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config["SESSION_IDLE_TIMEOUT_HOURS"])


def create_session(
    *,
    customer: Customer | None = None,
    employee: Employee | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create new session token for exactly one customer or employee.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    if (customer is None) == (employee is None):
        raise ValueError("Session requires exactly one of customer or employee")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        customer_id=customer.customer_id if customer else None,
        employee_id=employee.employee_id if employee else None,
        location_id=employee.location_id if employee else None,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> Principal | None:
    """
    Validate session token and return the Principal if valid.

    Returns None if:
    - Token is invalid, expired, or revoked
    - The account is deactivated

    Updates last_used_at on successful validation (activity tracking).
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if as_naive_utc(session.expires_at) < now:
        return None

    if now - as_naive_utc(session.last_used_at) > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    account = session.customer if session.customer_id else session.employee
    if not account or not account.is_active:
        _revoke(session, "Account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    if session.customer_id:
        return Principal(kind=PRINCIPAL_CUSTOMER, subject_id=session.customer_id, session_id=session.id)
    return Principal(
        kind=PRINCIPAL_EMPLOYEE,
        subject_id=session.employee_id,
        location_id=session.location_id,
        session_id=session.id,
    )


def revoke_session(session_id: str, reason: str = "Logout") -> bool:
    session = db.session.query(SessionToken).filter_by(id=session_id).first()
    if not session or session.is_revoked:
        return False
    _revoke(session, reason)
    return True
