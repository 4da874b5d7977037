# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every order and every catalog change must be attributable to a
customer or an employee. Uses bcrypt for password hashing and validates
password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Customer, Employee, Location
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_customer(*, email: str, name: str, password: str) -> Customer:
    """
    Create a customer account.

    Raises:
        ConflictError: email already registered
        PasswordValidationError: weak password
    """
    email = email.strip().lower()
    if db.session.query(Customer).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    customer = Customer(email=email, name=name.strip(), password_hash=hash_password(password))
    db.session.add(customer)
    db.session.commit()
    return customer


def create_employee(
    *,
    username: str,
    email: str,
    password: str,
    location_id: str | None = None,
) -> Employee:
    """
    Create an employee, optionally assigned to a location.

    Raises:
        NotFoundError: location does not exist
        ConflictError: username or email already taken
        PasswordValidationError: weak password
    """
    if location_id is not None:
        if not db.session.query(Location).filter_by(location_id=location_id).first():
            raise NotFoundError("Location not found")

    email = email.strip().lower()
    existing = db.session.query(Employee).filter(
        db.or_(Employee.username == username, Employee.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    employee = Employee(
        username=username.strip(),
        email=email,
        password_hash=hash_password(password),
        location_id=location_id,
    )
    db.session.add(employee)
    db.session.commit()
    return employee


def authenticate_customer(email: str, password: str) -> Customer | None:
    """Returns the Customer if credentials are valid and the account is active."""
    customer = db.session.query(Customer).filter_by(email=email.strip().lower(), is_active=True).first()
    if not customer or not verify_password(password, customer.password_hash):
        return None
    customer.last_login_at = utcnow()
    db.session.commit()
    return customer


def authenticate_employee(identifier: str, password: str) -> Employee | None:
    """Accepts username or email. Returns the Employee if credentials are valid."""
    identifier = identifier.strip()
    employee = db.session.query(Employee).filter(
        db.or_(Employee.username == identifier, Employee.email == identifier.lower()),
        Employee.is_active.is_(True),
    ).first()
    if not employee or not verify_password(password, employee.password_hash):
        return None
    employee.last_login_at = utcnow()
    db.session.commit()
    return employee
