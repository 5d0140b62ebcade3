"""Catalog service: product lifecycle, margin confirmation and atomic stock moves."""

from datetime import date

import pytest

from retailpos.errors import InsufficientStock, MarginWarning, ProductNotFound, ValidationError
from retailpos.extensions import db
from retailpos.models import ActivityLog, Product
from retailpos.services import catalog_service


def test_create_product_assigns_id_and_logs_activity(make_product):
    p = make_product("Tata Salt (1kg)", price=2800, cost=2200, stock=450)

    assert p.id is not None
    assert p.stock == 450
    assert p.is_active is True
    assert p.last_updated is not None

    entry = db.session.query(ActivityLog).one()
    assert entry.action == "Added new product: Tata Salt (1kg)"
    assert entry.actor_role == "SYSTEM"


def test_create_product_rejects_negative_price(app):
    with pytest.raises(ValidationError, match="Prices must be positive"):
        catalog_service.create_product(patch={"name": "Bad", "selling_price_cents": -1, "cost_price_cents": 0})
    assert db.session.query(Product).count() == 0


def test_create_product_rejects_manufacturing_after_expiry(app):
    with pytest.raises(ValidationError, match="Manufacturing date cannot be after expiry date"):
        catalog_service.create_product(patch={
            "name": "Milk",
            "selling_price_cents": 6600,
            "cost_price_cents": 5600,
            "manufacturing_date": date(2026, 3, 10),
            "expiry_date": date(2026, 3, 1),
        })


def test_update_dates_checked_against_stored_record(make_product):
    p = make_product(expiry_date=date(2026, 3, 1))

    with pytest.raises(ValidationError):
        catalog_service.update_product(product_id=p.id, patch={"manufacturing_date": date(2026, 4, 1)})


def test_update_unknown_product(app):
    with pytest.raises(ProductNotFound):
        catalog_service.update_product(product_id=999, patch={"name": "Ghost"})


def test_update_rejects_stock_field(make_product):
    p = make_product(stock=5)

    with pytest.raises(ValidationError, match="Field not allowed: stock"):
        catalog_service.update_product(product_id=p.id, patch={"stock": 500})
    assert db.session.get(Product, p.id).stock == 5


def test_margin_warning_when_both_prices_set_below_cost(make_product):
    p = make_product(price=10000, cost=6000)

    with pytest.raises(MarginWarning):
        catalog_service.update_product(
            product_id=p.id,
            patch={"selling_price_cents": 5000, "cost_price_cents": 6000},
        )
    assert db.session.get(Product, p.id).selling_price_cents == 10000


def test_margin_warning_when_selling_price_drops_below_stored_cost(make_product):
    p = make_product(price=10000, cost=6000)

    with pytest.raises(MarginWarning) as excinfo:
        catalog_service.update_product(product_id=p.id, patch={"selling_price_cents": 5000})
    assert excinfo.value.to_dict()["require_confirmation"] is True

    updated = catalog_service.update_product(
        product_id=p.id,
        patch={"selling_price_cents": 5000},
        confirm_loss=True,
    )
    assert updated.selling_price_cents == 5000
    assert updated.cost_price_cents == 6000


def test_update_bumps_last_updated_and_logs(make_product):
    p = make_product("Amul Butter (500g)")
    before = p.last_updated

    updated = catalog_service.update_product(product_id=p.id, patch={"section": "Aisle 4"})

    assert updated.section == "Aisle 4"
    assert updated.last_updated >= before
    actions = [a.action for a in db.session.query(ActivityLog).order_by(ActivityLog.id).all()]
    assert actions[-1] == "Updated product: Amul Butter (500g)"


def test_adjust_stock_applies_delta(make_product):
    p = make_product(stock=5)

    assert catalog_service.adjust_stock(p.id, -3).stock == 2
    assert catalog_service.adjust_stock(p.id, 4).stock == 6


def test_adjust_stock_never_goes_negative(make_product):
    p = make_product("Maggi", stock=2)
    version_before = p.version_id

    with pytest.raises(InsufficientStock) as excinfo:
        catalog_service.adjust_stock(p.id, -3)

    assert excinfo.value.details["available"] == 2
    assert excinfo.value.message == "Insufficient stock for Maggi. Available: 2"
    fresh = db.session.get(Product, p.id, populate_existing=True)
    assert fresh.stock == 2
    assert fresh.version_id == version_before


def test_adjust_stock_unknown_product(app):
    with pytest.raises(ProductNotFound):
        catalog_service.adjust_stock(404, 1)


def test_restock_logs_quantity(make_product):
    p = make_product("Dettol Handwash (250ml)", stock=25)

    restocked = catalog_service.restock(p.id, 50)

    assert restocked.stock == 75
    entry = db.session.query(ActivityLog).order_by(ActivityLog.id.desc()).first()
    assert entry.action == "Updated Stock: Dettol Handwash (250ml) (+50)"
    assert entry.details == "Stock updated to 75"


@pytest.mark.parametrize("qty", [0, -5, "abc", 1.5, True])
def test_restock_requires_positive_integer(make_product, qty):
    p = make_product(stock=5)

    with pytest.raises(ValidationError):
        catalog_service.restock(p.id, qty)


def test_deactivate_hides_product_from_listing(make_product):
    kept = make_product("Kept")
    gone = make_product("Gone")

    catalog_service.deactivate_product(gone.id)

    assert [p.id for p in catalog_service.list_products()] == [kept.id]
    assert len(catalog_service.list_products(include_inactive=True)) == 2
    # History still resolves the row
    assert catalog_service.get_product(gone.id).is_active is False
    with pytest.raises(ProductNotFound):
        catalog_service.get_product(gone.id, include_inactive=False)


def test_update_rejects_blank_name(make_product):
    p = make_product("Milk")

    with pytest.raises(ValidationError, match="name cannot be blank"):
        catalog_service.update_product(product_id=p.id, patch={"name": "  "})
    assert db.session.get(Product, p.id).name == "Milk"
