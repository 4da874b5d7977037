from __future__ import annotations

from ..extensions import db
from ..identifiers import new_id
from ..time_utils import to_utc_z


class Customer(db.Model):
    """Shopper account; the only principal allowed to place orders."""
    __tablename__ = "customers"

    customer_id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "email": self.email,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class Employee(db.Model):
    """
    Staff account working for one location.

    Catalog writes and stock adjustments are attributed to the employee and
    scoped to their location.
    """
    __tablename__ = "employees"

    employee_id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    # Nullable so head-office staff can exist without a counter
    location_id = db.Column(db.String(36), db.ForeignKey("locations.location_id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    location = db.relationship("Location", backref=db.backref("employees", lazy=True))

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "username": self.username,
            "email": self.email,
            "location_id": self.location_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class SessionToken(db.Model):
    """
    Bearer session for exactly one customer or one employee.

    Only the SHA-256 hash of the token is stored. The employee's location
    is captured at login and stays fixed for the session lifetime.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.CheckConstraint(
            "(customer_id IS NULL) <> (employee_id IS NULL)",
            name="ck_session_tokens_single_principal",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    customer_id = db.Column(db.String(36), db.ForeignKey("customers.customer_id"), nullable=True, index=True)
    employee_id = db.Column(db.String(36), db.ForeignKey("employees.employee_id"), nullable=True, index=True)
    location_id = db.Column(db.String(36), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    customer = db.relationship("Customer")
    employee = db.relationship("Employee")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_type": "customer" if self.customer_id else "employee",
            "location_id": self.location_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
