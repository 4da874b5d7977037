# Overview: Tests for health, locations, CORS and the flask CLI groups.

from postmart.extensions import db
from postmart.models import Customer, Location
from postmart.services import inventory_ledger


def test_health_reports_database(client, db_session):
    response = client.get('/api/health')

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["database"]["status"] == "healthy"
    assert body["checked_at"].endswith("Z")


def test_locations_listed_by_name(client, location_id, other_location_id):
    response = client.get('/api/locations')

    assert response.status_code == 200
    assert [loc["name"] for loc in response.get_json()["items"]] == ["Harbour", "Main Street"]


def test_cors_only_for_allowed_origins(app, client, db_session):
    allowed = sorted(app.config["CORS_ALLOWED_ORIGINS"])[0]

    response = client.get('/api/locations', headers={"Origin": allowed})
    assert response.headers["Access-Control-Allow-Origin"] == allowed

    response = client.get('/api/locations', headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in response.headers


def test_cli_creates_and_lists_locations(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["locations", "create", "--name", "Depot", "--address", "2 Yard Ln"])
    assert result.exit_code == 0, result.output
    assert "Created location: Depot" in result.output

    duplicate = runner.invoke(args=["locations", "create", "--name", "Depot"])
    assert duplicate.exit_code != 0

    listing = runner.invoke(args=["locations", "list"])
    assert "Depot" in listing.output
    assert db.session.query(Location).filter_by(name="Depot").count() == 1


def test_cli_creates_customer(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create-customer", "--email", "cli@example.com", "--name", "Cli", "--password", "Parcel#2024",
    ])
    assert result.exit_code == 0, result.output
    assert db.session.query(Customer).filter_by(email="cli@example.com").count() == 1

    weak = runner.invoke(args=[
        "users", "create-customer", "--email", "weak@example.com", "--name", "Weak", "--password", "weak",
    ])
    assert weak.exit_code != 0


def test_cli_adjusts_and_shows_inventory(app, store, location_id, make_product):
    product_id = make_product("Stamp book", 1000, {location_id: 5})
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "inventory", "adjust", "--product-id", product_id, "--location-id", location_id, "--delta", "3",
    ])
    assert result.exit_code == 0, result.output
    assert "New quantity: 8" in result.output
    assert inventory_ledger.get_available(store, product_id, location_id) == 8

    short = runner.invoke(args=[
        "inventory", "adjust", "--product-id", product_id, "--location-id", location_id, "--delta", "-100",
    ])
    assert short.exit_code != 0

    shown = runner.invoke(args=["inventory", "show", "--location-id", location_id])
    assert "Stamp book" in shown.output
