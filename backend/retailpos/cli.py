# Overview: Flask CLI command groups for bootstrap, catalog setup and stock maintenance.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--store-name "Corner Shop"] [--prefix INV]
#   Idempotent bootstrap: creates tables and the store settings row.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog add-product --name "Cola 330ml" --sku COLA330 --barcode 5000112 --price 1.50 --stock 24
#   Create a product; --stock is posted as a stock_in movement.
# - python -m flask catalog list
#   List products with price and stock.
#
# Inventory:
# - python -m flask inventory adjust 1 damage 2 --reason "Dropped crate"
#   Manual stock movement (stock_in, stock_out, adjustment, damage, expired).
# - python -m flask inventory low-stock [--limit 50]
#   Active products at or below their reorder level.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import catalog_service, inventory_service
from .services.errors import PosError
from .services.invoice_service import get_store_settings
from .services.money import format_cents, to_cents
from .services.session_service import SYSTEM_ACTOR
from .validation import AdjustmentRequest, MANUAL_ADJUSTMENT_ACTIONS


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store-name', default=None, help='Store name shown on receipts')
@click.option('--prefix', default=None, help='Invoice number prefix')
@with_appcontext
def init_system(store_name, prefix):
    """Create tables and the store settings singleton (safe to re-run)."""
    click.echo("START Initializing store...")

    db.create_all()
    click.echo("PASS Tables created")

    settings = get_store_settings()
    if store_name:
        settings.store_name = store_name
    if prefix:
        settings.invoice_prefix = prefix.strip().upper()
    db.session.commit()

    click.echo(f"PASS Store: {settings.store_name}")
    click.echo(f"PASS Next invoice: {settings.invoice_prefix} #{settings.invoice_next_number}")


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
    click.echo("BUILD Creating tables...")
    db.create_all()
    click.echo("PASS Database reset complete. Run 'flask system init' to configure the store.")


@click.group('catalog')
def catalog_group():
    """Product catalog commands."""


@catalog_group.command('add-product')
@click.option('--name', required=True)
@click.option('--sku', required=True)
@click.option('--barcode', required=True)
@click.option('--category', default='General', show_default=True)
@click.option('--price', required=True, help='Selling price in major units, e.g. 10.00')
@click.option('--cost', default='0', help='Cost price in major units')
@click.option('--tax', default='0', help='Tax percent')
@click.option('--discount', default='0', help='Discount percent')
@click.option('--stock', default=0, type=int, help='Opening stock')
@click.option('--reorder-level', default=10, type=int, show_default=True)
@with_appcontext
def add_product(name, sku, barcode, category, price, cost, tax, discount, stock, reorder_level):
    """Create a product."""
    try:
        product = catalog_service.create_product(
            name=name,
            sku=sku,
            barcode=barcode,
            category=category,
            selling_price_cents=to_cents(price),
            cost_price_cents=to_cents(cost),
            tax_percent=tax,
            discount_percent=discount,
            reorder_level=reorder_level,
            initial_stock=stock,
            actor=SYSTEM_ACTOR,
        )
    except PosError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created product {product.sku} (ID: {product.id}) stock={product.stock}")


@catalog_group.command('list')
@with_appcontext
def list_products():
    """List all products."""
    symbol = get_store_settings().currency_symbol
    products = catalog_service.list_products()
    if not products:
        click.echo("No products.")
        return
    for p in products:
        click.echo(
            f"{p.id:>5}  {p.sku:<16} {p.name:<32} {format_cents(p.selling_price_cents, symbol):>12}  "
            f"stock={p.stock:<6} {p.status}"
        )


@click.group('inventory')
def inventory_group():
    """Stock maintenance commands."""


@inventory_group.command('adjust')
@click.argument('product_id', type=int)
@click.argument('action', type=click.Choice(MANUAL_ADJUSTMENT_ACTIONS))
@click.argument('quantity', type=int)
@click.option('--reason', required=True, help='Why the stock changed')
@click.option('--cost', default=None, help='Unit cost in major units (recorded on the log row)')
@with_appcontext
def adjust_stock(product_id, action, quantity, reason, cost):
    """Apply a manual stock movement."""
    request = AdjustmentRequest(
        product_id=product_id,
        action=action,
        quantity=quantity,
        reason=reason,
        cost_price_cents=to_cents(cost) if cost is not None else None,
    )
    try:
        movement = inventory_service.adjust_inventory(request, SYSTEM_ACTOR)
    except PosError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS {action}: {movement.quantity_before} -> {movement.quantity_after}")


@inventory_group.command('low-stock')
@click.option('--limit', default=50, type=int, show_default=True)
@with_appcontext
def low_stock(limit):
    """List active products at or below their reorder level."""
    products = catalog_service.get_low_stock_products(limit=limit)
    if not products:
        click.echo("PASS No products below reorder level.")
        return
    for p in products:
        click.echo(f"WARN {p.sku:<16} {p.name:<32} stock={p.stock} reorder_level={p.reorder_level}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(inventory_group)
