from __future__ import annotations

from ..extensions import db
from ..money import bps_to_percent, cents_to_amount
from ..time_utils import to_iso_date, to_utc_z, utcnow


class Product(db.Model):
    """
    Catalog entry and authoritative stock counter.

    STOCK: `stock` is only changed through catalog_service.adjust_stock, which
    issues a single conditional UPDATE. Field edits go through the ORM and are
    guarded by version_id (optimistic locking).

    MONEY: prices are integer cents, GST is basis points (5% == 500).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_nonnegative"),
        db.CheckConstraint("selling_price_cents >= 0", name="ck_products_selling_price_nonnegative"),
        db.CheckConstraint("cost_price_cents >= 0", name="ck_products_cost_price_nonnegative"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False, default="")
    barcode = db.Column(db.String(64), nullable=False, default="", index=True)
    category = db.Column(db.String(64), nullable=False, default="Groceries")

    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    gst_rate_bps = db.Column(db.Integer, nullable=False, default=500)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(16), nullable=False, default="pcs")

    manufacturing_date = db.Column(db.Date, nullable=True)
    expiry_date = db.Column(db.Date, nullable=True)

    supplier = db.Column(db.String(255), nullable=False, default="")
    batch_no = db.Column(db.String(64), nullable=False, default="")
    section = db.Column(db.String(64), nullable=False, default="")

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_updated = db.Column(db.DateTime, nullable=False, default=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "category": self.category,
            "selling_price": cents_to_amount(self.selling_price_cents),
            "cost_price": cents_to_amount(self.cost_price_cents),
            "gst_rate": bps_to_percent(self.gst_rate_bps),
            "stock": self.stock,
            "min_stock": self.min_stock,
            "unit": self.unit,
            "manufacturing_date": to_iso_date(self.manufacturing_date),
            "expiry_date": to_iso_date(self.expiry_date),
            "supplier": self.supplier,
            "batch_no": self.batch_no,
            "section": self.section,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "last_updated": to_utc_z(self.last_updated),
        }
