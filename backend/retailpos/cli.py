# Overview: Flask CLI command groups for bootstrap, demo data and report inspection.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo [--expiry-base 2026-01-01]
#   Add a small demo catalog when the catalog is empty.
#
# Reports:
# - python -m flask reports dashboard [--as-of 2026-02-01T12:00:00Z]
#   Print dashboard stats as JSON.
# - python -m flask reports summary [--start ...] [--end ...]
#   Print the sales report (top products, cashiers, reorder suggestions) as JSON.

import json
from datetime import timedelta

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product
from .money import percent_to_bps, to_cents
from .services import analytics_service, catalog_service
from .time_utils import parse_iso_date, utcnow

# name, sku, category, selling, cost, stock, min_stock, unit, gst %, days to expiry, supplier, section
DEMO_PRODUCTS = [
    ("Tata Salt (1kg)", "TS001", "Groceries", "28", "22", 450, 50, "kg", "5", 180, "Tata Consumer", "Aisle 1"),
    ("Fortune Sunflower Oil (1L)", "FS001", "Groceries", "155", "130", 200, 30, "L", "5", 25, "Adani Wilmar", "Aisle 1"),
    ("Surf Excel Matic (2kg)", "SE001", "Household", "480", "380", 120, 20, "kg", "18", 365, "Hindustan Unilever", "Aisle 3"),
    ("Colgate MaxFresh (150g)", "CM001", "Personal Care", "95", "75", 340, 40, "pcs", "18", 300, "Colgate-Palmolive", "Aisle 2"),
    ("Amul Butter (500g)", "AB001", "Dairy", "270", "230", 85, 20, "pcs", "12", 45, "Gujarat Co-op", "Aisle 4"),
    ("Lays Classic Salted (52g)", "LC001", "Snacks", "20", "15", 600, 100, "pcs", "12", 90, "PepsiCo India", "Aisle 5"),
    ("Dettol Handwash (250ml)", "DH001", "Personal Care", "99", "75", 25, 30, "pcs", "18", 5, "Reckitt Benckiser", "Aisle 2"),
    ("Maggi Noodles (Pack of 12)", "MN001", "Snacks", "168", "140", 18, 25, "pcs", "12", 150, "Nestle India", "Aisle 5"),
    ("Mother Dairy Milk (1L)", "MD001", "Dairy", "66", "56", 180, 40, "L", "5", 10, "Mother Dairy", "Aisle 4"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@system_group.command('seed-demo')
@click.option('--expiry-base', default=None, help='Date expiry offsets count from (default: today)')
@with_appcontext
def seed_demo(expiry_base):
    """Seed a demo catalog (skipped when products already exist)."""
    if db.session.query(Product).count():
        click.echo("WARN  Catalog not empty, skipping demo seed")
        return

    base = parse_iso_date(expiry_base) if expiry_base else utcnow().date()

    for (name, sku, category, selling, cost, stock, min_stock, unit, gst,
         days_to_expiry, supplier, section) in DEMO_PRODUCTS:
        product = catalog_service.create_product(patch={
            "name": name,
            "sku": sku,
            "category": category,
            "selling_price_cents": to_cents(selling),
            "cost_price_cents": to_cents(cost),
            "gst_rate_bps": percent_to_bps(gst),
            "stock": stock,
            "min_stock": min_stock,
            "unit": unit,
            "expiry_date": base + timedelta(days=days_to_expiry),
            "supplier": supplier,
            "section": section,
        })
        click.echo(f"PASS Created product: {product.name} (ID: {product.id})")


@click.group('reports')
def reports_group():
    """Print analytics as JSON."""


@reports_group.command('dashboard')
@click.option('--as-of', default=None, help='ISO-8601 datetime (default: now)')
@with_appcontext
def dashboard_cli(as_of):
    try:
        stats = analytics_service.dashboard_stats(as_of=as_of)
    except analytics_service.ReportError as exc:
        raise click.BadParameter(str(exc))
    click.echo(json.dumps(stats, indent=2))


@reports_group.command('summary')
@click.option('--start', default=None, help='ISO-8601 datetime, inclusive')
@click.option('--end', default=None, help='ISO-8601 datetime, inclusive')
@with_appcontext
def summary_cli(start, end):
    try:
        report = analytics_service.sales_report(start=start, end=end)
    except analytics_service.ReportError as exc:
        raise click.BadParameter(str(exc))
    click.echo(json.dumps(report, indent=2))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(reports_group)
