# Overview: Flask CLI command groups for bootstrap, accounts and stock maintenance.

# backend/postmart/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to the factory (PowerShell: $env:FLASK_APP="postmart:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Locations:
# - python -m flask locations create --name "Main St" --address "1 Main St"
# - python -m flask locations list
#
# Accounts:
# - python -m flask users create-employee --username clerk --email clerk@postmart.local --location-id <id>
# - python -m flask users create-customer --email jo@example.com --name "Jo"
#
# Inventory:
# - python -m flask inventory adjust --product-id <id> --location-id <id> --delta 10
# - python -m flask inventory show --location-id <id>

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Location
from .services import auth_service, inventory_ledger, products_service
from .services.auth_service import PasswordValidationError
from .services.inventory_ledger import InsufficientStock
from .services.store_adapter import StoreFailure, get_store
from .validation import ConflictError, NotFoundError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
    db.create_all()
    click.echo("PASS Database schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('locations')
def locations_group():
    """Retail location management."""


@locations_group.command('create')
@click.option('--name', required=True, help='Location name (unique)')
@click.option('--address', default=None, help='Street address')
@with_appcontext
def create_location_cli(name, address):
    """Create a retail location."""
    if db.session.query(Location).filter_by(name=name).first():
        raise click.ClickException(f"Location '{name}' already exists")

    location = Location(name=name, address=address)
    db.session.add(location)
    db.session.commit()
    click.echo(f"PASS Created location: {location.name} (ID: {location.location_id})")


@locations_group.command('list')
@with_appcontext
def list_locations_cli():
    """List all locations."""
    locations = db.session.query(Location).order_by(Location.name.asc()).all()
    if not locations:
        click.echo("No locations found.")
        return

    click.echo(f"{'ID':<38} {'Name':<30} Address")
    click.echo("-" * 90)
    for loc in locations:
        click.echo(f"{loc.location_id:<38} {loc.name:<30} {loc.address or ''}")


@click.group('users')
def users_group():
    """Customer and employee accounts."""


@users_group.command('create-employee')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--location-id', default=None, help='Location the employee works for')
@with_appcontext
def create_employee_cli(username, email, password, location_id):
    """Create an employee account."""
    try:
        employee = auth_service.create_employee(
            username=username, email=email, password=password, location_id=location_id
        )
    except (PasswordValidationError, ConflictError, NotFoundError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created employee: {employee.username} (ID: {employee.employee_id})")


@users_group.command('create-customer')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_customer_cli(email, name, password):
    """Create a customer account."""
    try:
        customer = auth_service.create_customer(email=email, name=name, password=password)
    except (PasswordValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created customer: {customer.email} (ID: {customer.customer_id})")


@click.group('inventory')
def inventory_group():
    """Stock inspection and adjustment."""


@inventory_group.command('adjust')
@click.option('--product-id', required=True)
@click.option('--location-id', required=True)
@click.option('--delta', type=int, required=True, help='Signed quantity change')
@with_appcontext
def adjust_inventory_cli(product_id, location_id, delta):
    """Apply a signed stock movement (stock-in or correction)."""
    try:
        quantity = inventory_ledger.adjust(get_store(), product_id, location_id, delta)
    except (ValidationError, NotFoundError) as e:
        raise click.ClickException(str(e))
    except InsufficientStock as e:
        raise click.ClickException(f"{e} at location {e.location_id}")
    except StoreFailure as e:
        raise click.ClickException(f"Store failure: {e.__cause__}")
    click.echo(f"PASS New quantity: {quantity}")


@inventory_group.command('show')
@click.option('--location-id', required=True)
@with_appcontext
def show_inventory_cli(location_id):
    """List stocked products and quantities at a location."""
    try:
        result = products_service.list_products(location_id)
    except NotFoundError as e:
        raise click.ClickException(str(e))

    click.echo(f"{'Product ID':<38} {'Name':<30} {'Price':>10} {'Qty':>6}")
    click.echo("-" * 90)
    for item in result["items"]:
        click.echo(
            f"{item['product_id']:<38} {item['name'][:30]:<30} {item['price']:>10.2f} {item['available_quantity']:>6}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(locations_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
