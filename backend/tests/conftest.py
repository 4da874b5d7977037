"""
Pytest fixtures for postmart backend tests.

Provides test database setup, location/account/product fixtures, a store
adapter bound to the test session, and auth headers.
"""

import pytest

from postmart import create_app
from postmart.extensions import db
from postmart.models import Customer, Employee, InventoryRecord, Location, Product
from postmart.services import session_service
from postmart.services.store_adapter import StoreAdapter


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_ENGINE_OPTIONS': {},
    'BCRYPT_ROUNDS': 4,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        db.session.rollback()
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    """Store adapter over the test session."""
    return StoreAdapter(db.session)


@pytest.fixture(scope='function')
def location_id(db_session):
    """Main Street counter."""
    location = Location(name="Main Street", address="1 Main St")
    db_session.add(location)
    db_session.commit()
    return location.location_id


@pytest.fixture(scope='function')
def other_location_id(db_session):
    """Harbour counter (second location)."""
    location = Location(name="Harbour", address="9 Quay Rd")
    db_session.add(location)
    db_session.commit()
    return location.location_id


@pytest.fixture(scope='function')
def customer_id(db_session):
    customer = Customer(email="ada@example.com", name="Ada", password_hash="x")
    db_session.add(customer)
    db_session.commit()
    return customer.customer_id


@pytest.fixture(scope='function')
def other_customer_id(db_session):
    customer = Customer(email="bob@example.com", name="Bob", password_hash="x")
    db_session.add(customer)
    db_session.commit()
    return customer.customer_id


@pytest.fixture(scope='function')
def employee_id(db_session, location_id):
    employee = Employee(username="clerk", email="clerk@postmart.local", password_hash="x", location_id=location_id)
    db_session.add(employee)
    db_session.commit()
    return employee.employee_id


@pytest.fixture(scope='function')
def make_product(db_session):
    """
    Factory: make_product(name, price_cents, stock={location_id: qty}) -> product_id.
    """
    def _make(name: str, price_cents: int, stock: dict | None = None) -> str:
        product = Product(name=name, price_cents=price_cents)
        db_session.add(product)
        db_session.flush()
        for loc_id, qty in (stock or {}).items():
            db_session.add(InventoryRecord(product_id=product.product_id, location_id=loc_id, quantity=qty))
        db_session.commit()
        return product.product_id

    return _make


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def customer_headers(db_session, customer_id):
    _, token = session_service.create_session(customer=db_session.get(Customer, customer_id))
    return auth_headers(token)


@pytest.fixture(scope='function')
def other_customer_headers(db_session, other_customer_id):
    _, token = session_service.create_session(customer=db_session.get(Customer, other_customer_id))
    return auth_headers(token)


@pytest.fixture(scope='function')
def employee_headers(db_session, employee_id):
    _, token = session_service.create_session(employee=db_session.get(Employee, employee_id))
    return auth_headers(token)
