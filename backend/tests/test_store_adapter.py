# Overview: Tests for the store adapter's statement execution and transaction scope.

import pytest
from sqlalchemy.orm import Session

from postmart.extensions import db
from postmart.models import Location
from postmart.services import inventory_ledger
from postmart.services.store_adapter import StoreAdapter, StoreFailure, get_store


def test_adapter_binds_the_scoped_session(db_session, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})
    store = StoreAdapter(db.session)

    assert isinstance(store.session, Session)
    assert store.session is db.session()

    with store.transaction():
        inventory_ledger.reserve(store, product_id, location_id, 2)

    assert inventory_ledger.get_available(store, product_id, location_id) == 3


def test_get_store_uses_a_plain_session(app):
    with app.app_context():
        assert isinstance(get_store().session, Session)


def test_execute_returns_rows_and_counts(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})

    result = store.execute(
        "SELECT product_id, quantity FROM inventory_records WHERE location_id = :loc",
        {"loc": location_id},
    )
    assert result.rows == [{"product_id": product_id, "quantity": 5}]
    assert result.first()["quantity"] == 5
    assert result.row_count == 1

    updated = store.execute(
        "UPDATE inventory_records SET quantity = quantity + 1 WHERE location_id = :loc",
        {"loc": location_id},
    )
    assert updated.row_count == 1
    assert updated.scalar() is None


def test_driver_errors_surface_as_store_failure(store):
    with pytest.raises(StoreFailure) as excinfo:
        store.execute("SELECT * FROM no_such_table")

    assert excinfo.value.__cause__ is not None


def test_failed_statement_outside_unit_of_work_rolls_back(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})
    store.execute(
        "UPDATE inventory_records SET quantity = quantity + 1 WHERE product_id = :pid",
        {"pid": product_id},
    )

    with pytest.raises(StoreFailure):
        store.execute("SELECT * FROM no_such_table")

    assert not store.session.in_transaction()
    assert inventory_ledger.get_available(store, product_id, location_id) == 5


def test_entering_unit_of_work_commits_pending_session_state(store, db_session):
    db_session.add(Location(name="Pending counter"))

    with pytest.raises(RuntimeError):
        with store.transaction():
            raise RuntimeError("unit aborts")

    # the pending object was committed on entry, before the unit rolled back
    assert db_session.query(Location).filter_by(name="Pending counter").count() == 1


def test_transaction_commits_on_success(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})

    with store.transaction():
        inventory_ledger.release(store, product_id, location_id, 2)
        assert store.in_transaction

    assert not store.in_transaction
    store.session.rollback()  # nothing pending; committed data survives
    assert inventory_ledger.get_available(store, product_id, location_id) == 7


def test_transaction_rolls_back_on_any_exception(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})

    with pytest.raises(RuntimeError):
        with store.transaction():
            inventory_ledger.release(store, product_id, location_id, 2)
            raise RuntimeError("caller gave up")

    assert inventory_ledger.get_available(store, product_id, location_id) == 5


def test_statement_failure_inside_transaction_rolls_back(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})

    with pytest.raises(StoreFailure):
        with store.transaction():
            inventory_ledger.release(store, product_id, location_id, 2)
            store.execute("INSERT INTO no_such_table VALUES (1)")

    assert inventory_ledger.get_available(store, product_id, location_id) == 5


def test_nested_scope_joins_outer_transaction(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})

    with pytest.raises(RuntimeError):
        with store.transaction():
            with store.transaction():
                inventory_ledger.release(store, product_id, location_id, 3)
            # inner scope must not have committed
            raise RuntimeError("outer aborts")

    assert inventory_ledger.get_available(store, product_id, location_id) == 5


def test_constraint_violation_is_store_failure(store, location_id, make_product):
    product_id = make_product("Stamp", 100, {location_id: 5})

    with pytest.raises(StoreFailure):
        with store.transaction():
            store.execute(
                "UPDATE inventory_records SET quantity = -1 WHERE product_id = :pid",
                {"pid": product_id},
            )

    assert inventory_ledger.get_available(store, product_id, location_id) == 5


def test_get_store_is_cached_per_context(app):
    with app.app_context():
        assert get_store() is get_store()
