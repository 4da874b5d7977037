# Overview: API tests for checkout and order history routes.

from postmart.services import inventory_ledger, order_service
from postmart.services.store_adapter import StoreFailure


def _checkout(client, headers, location_id, cart):
    return client.post('/api/orders', json={"location_id": location_id, "cart": cart}, headers=headers)


def test_checkout_returns_confirmation(client, customer_headers, location_id, make_product, store):
    stamp = make_product("Stamp book", 1000, {location_id: 5})
    tape = make_product("Packing tape", 550, {location_id: 3})

    response = _checkout(client, customer_headers, location_id, [
        {"product_id": stamp, "quantity": 2, "price": 10.00},
        {"product_id": tape, "quantity": 1, "price": "5.50"},
    ])

    assert response.status_code == 201
    data = response.get_json()
    assert data["status"] == "success"
    assert data["order"]["total_price"] == 25.5
    assert data["order"]["total_price_cents"] == 2550
    assert data["order"]["order_id"]
    assert inventory_ledger.get_available(store, stamp, location_id) == 3


def test_checkout_insufficient_stock_is_conflict(client, customer_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 1})

    response = _checkout(client, customer_headers, location_id, [{"product_id": stamp, "quantity": 2, "price": 10}])

    assert response.status_code == 409
    data = response.get_json()
    assert data["error"] == "Insufficient stock"
    assert data["details"]["product_id"] == stamp
    assert data["details"]["requested_quantity"] == 2


def test_checkout_rejects_non_object_body(client, customer_headers, store, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})

    for body in ([1, 2], [], "cart", 7):
        response = client.post('/api/orders', json=body, headers=customer_headers)
        assert response.status_code == 400, body

    assert inventory_ledger.get_available(store, stamp, location_id) == 5


def test_checkout_rejects_absurd_price_precision(client, customer_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})

    response = _checkout(client, customer_headers, location_id, [
        {"product_id": stamp, "quantity": 1, "price": "12345678901234567890123456789.001"},
    ])

    assert response.status_code == 400
    assert response.get_json()["error"].startswith("cart line 1:")


def test_checkout_rejects_malformed_cart(client, customer_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})

    bad_carts = [
        [],
        "not-a-list",
        [{"product_id": stamp, "quantity": 0, "price": 10}],
        [{"product_id": stamp, "quantity": 1.5, "price": 10}],
        [{"product_id": stamp, "quantity": 1, "price": -1}],
        [{"product_id": stamp, "quantity": 1, "price": 10.001}],
        [{"product_id": stamp, "quantity": 1}],
        [{"product_id": stamp, "quantity": 1, "price": 10, "discount": 5}],
    ]
    for cart in bad_carts:
        response = _checkout(client, customer_headers, location_id, cart)
        assert response.status_code == 400, cart


def test_checkout_error_names_the_cart_line(client, customer_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})

    response = _checkout(client, customer_headers, location_id, [
        {"product_id": stamp, "quantity": 1, "price": 10},
        {"product_id": stamp, "quantity": -3, "price": 10},
    ])

    assert response.status_code == 400
    assert response.get_json()["error"].startswith("cart line 2:")


def test_checkout_unknown_location_or_product(client, customer_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})

    response = _checkout(client, customer_headers, "nowhere", [{"product_id": stamp, "quantity": 1, "price": 10}])
    assert response.status_code == 404

    response = _checkout(client, customer_headers, location_id, [{"product_id": "ghost", "quantity": 1, "price": 10}])
    assert response.status_code == 404


def test_checkout_requires_customer_session(client, employee_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})
    cart = [{"product_id": stamp, "quantity": 1, "price": 10}]

    assert _checkout(client, {}, location_id, cart).status_code == 401
    assert _checkout(client, {"Authorization": "Bearer nope"}, location_id, cart).status_code == 401

    response = _checkout(client, employee_headers, location_id, cart)
    assert response.status_code == 403
    assert response.get_json()["required_account_type"] == "customer"


def test_store_failure_is_unavailable_without_details(client, customer_headers, location_id, make_product, monkeypatch):
    stamp = make_product("Stamp book", 1000, {location_id: 5})

    def boom(*args, **kwargs):
        raise StoreFailure("connection reset by peer at 10.0.0.7")

    monkeypatch.setattr(order_service, "place_order", boom)

    response = _checkout(client, customer_headers, location_id, [{"product_id": stamp, "quantity": 1, "price": 10}])

    assert response.status_code == 503
    body = response.get_json()
    assert "10.0.0.7" not in body["error"]
    assert "retry" in body["error"]


def test_order_history_is_private(client, customer_headers, other_customer_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})
    placed = _checkout(client, customer_headers, location_id, [{"product_id": stamp, "quantity": 1, "price": 10}])
    order_id = placed.get_json()["order"]["order_id"]

    mine = client.get('/api/orders', headers=customer_headers).get_json()
    assert [o["order_id"] for o in mine["items"]] == [order_id]

    theirs = client.get('/api/orders', headers=other_customer_headers).get_json()
    assert theirs["count"] == 0

    response = client.get(f'/api/orders/{order_id}', headers=customer_headers)
    assert response.status_code == 200
    order = response.get_json()["order"]
    assert order["items"][0]["line_number"] == 1
    assert order["items"][0]["unit_price"] == 10.0

    assert client.get(f'/api/orders/{order_id}', headers=other_customer_headers).status_code == 404


def test_employee_sees_location_orders(client, customer_headers, employee_headers, location_id, make_product):
    stamp = make_product("Stamp book", 1000, {location_id: 5})
    _checkout(client, customer_headers, location_id, [{"product_id": stamp, "quantity": 1, "price": 10}])

    response = client.get('/api/orders', headers=employee_headers)

    assert response.status_code == 200
    assert response.get_json()["count"] == 1


def test_cancel_route_restores_stock(client, customer_headers, other_customer_headers, location_id, make_product, store):
    stamp = make_product("Stamp book", 1000, {location_id: 5})
    placed = _checkout(client, customer_headers, location_id, [{"product_id": stamp, "quantity": 2, "price": 10}])
    order_id = placed.get_json()["order"]["order_id"]

    assert client.post(f'/api/orders/{order_id}/cancel', headers=other_customer_headers).status_code == 403

    response = client.post(f'/api/orders/{order_id}/cancel', headers=customer_headers)
    assert response.status_code == 200
    assert response.get_json()["order"]["status"] == "CANCELLED"
    assert inventory_ledger.get_available(store, stamp, location_id) == 5

    assert client.post(f'/api/orders/{order_id}/cancel', headers=customer_headers).status_code == 409
    assert client.post('/api/orders/missing/cancel', headers=customer_headers).status_code == 404
