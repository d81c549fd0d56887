# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/tireshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default categories and the tax rate setting.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system clear-data --yes
#   Delete sales, sale items and expenses; keep catalog and settings.
#
# Settings:
# - python -m flask settings show
# - python -m flask settings set-tax-rate 9.25
#
# Catalog inspection:
# - python -m flask products low-stock

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Sale, SaleItem, Expense
from .money import to_money_str
from .services import products_service, settings_service
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the shop database.

    Creates:
    - All tables (if missing)
    - Default categories: Tires, Wheels, Tire Parts
    - Global tax rate setting (Config.DEFAULT_GLOBAL_TAX_RATE)
    """
    click.echo("START Initializing shop database...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = products_service.seed_default_categories()
    if created:
        click.echo(f"PASS Created categories: {', '.join(created)}")
    else:
        click.echo("PASS Default categories already present")

    if settings_service.ensure_default_settings():
        click.echo("PASS Seeded global tax rate setting")
    rate = settings_service.get_global_tax_rate()
    click.echo(f"PASS Global tax rate: {to_money_str(rate)}%")

    click.echo("DONE Shop initialized")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('clear-data')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def clear_data(yes):
    """
    Clear transactional data while keeping the catalog and settings.

    Removes: all sales, sale items and expenses.
    Stock levels are NOT restored.
    """
    if not yes:
        click.confirm("WARN This will DELETE all sales and expenses. Are you sure?", abort=True)

    items = db.session.query(SaleItem).delete(synchronize_session=False)
    sales = db.session.query(Sale).delete(synchronize_session=False)
    expenses = db.session.query(Expense).delete(synchronize_session=False)
    db.session.commit()

    click.echo(f"PASS Deleted {sales} sales, {items} sale items, {expenses} expenses")


@click.group('settings')
def settings_group():
    """Shop settings."""


@settings_group.command('show')
@with_appcontext
def show_settings():
    rate = settings_service.get_global_tax_rate()
    click.echo(f"global_tax_rate = {to_money_str(rate)}")


@settings_group.command('set-tax-rate')
@click.argument('rate')
@with_appcontext
def set_tax_rate(rate):
    """Set the global sales tax percentage (affects future sales only)."""
    try:
        saved = settings_service.set_global_tax_rate(rate)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS global_tax_rate = {to_money_str(saved)}")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('low-stock')
@with_appcontext
def low_stock():
    """List active products at or below their min stock level."""
    products = products_service.list_low_stock_products()
    if not products:
        click.echo("No low-stock products")
        return
    for p in products:
        click.echo(f"{p.sku:<20} {p.name:<40} qty={p.quantity} min={p.min_stock_level}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(settings_group)
    app.cli.add_command(products_group)
