from __future__ import annotations

from sqlalchemy import event

from ..errors import ImmutableRecordError
from ..extensions import db
from ..money import bps_to_percent, cents_to_amount
from ..time_utils import to_utc_z, utcnow


class Transaction(db.Model):
    """
    Committed sale. Written once by checkout_service, never updated or deleted.

    total_cents == round_half_up(subtotal - discount + exact GST); the rounded
    gst_amount_cents is stored for display and report sums.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("invoice_no", name="uq_transactions_invoice_no"),
        db.Index("ix_transactions_created_at", "created_at"),
        db.Index("ix_transactions_cashier", "cashier_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_no = db.Column(db.String(32), nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    gst_amount_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False, default="")

    # Snapshots of the external identity collaborator
    cashier_id = db.Column(db.String(64), nullable=False, default="")
    cashier_name = db.Column(db.String(255), nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    items = db.relationship(
        "TransactionItem",
        back_populates="transaction",
        order_by="TransactionItem.line_no",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} invoice_no={self.invoice_no!r} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_no": self.invoice_no,
            "items": [item.to_dict() for item in self.items],
            "subtotal": cents_to_amount(self.subtotal_cents),
            "discount": cents_to_amount(self.discount_cents),
            "gst_amount": cents_to_amount(self.gst_amount_cents),
            "total": cents_to_amount(self.total_cents),
            "payment_method": self.payment_method,
            "customer_phone": self.customer_phone,
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier_name,
            "created_at": to_utc_z(self.created_at),
        }


class TransactionItem(db.Model):
    """Sold line with price/GST/name snapshots taken at checkout time."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", "line_no", name="uq_transaction_items_line"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    line_no = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    gst_rate_bps = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    transaction = db.relationship("Transaction", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": cents_to_amount(self.unit_price_cents),
            "gst_rate": bps_to_percent(self.gst_rate_bps),
            "line_total": cents_to_amount(self.line_total_cents),
        }


class InvoiceSequence(db.Model):
    """Per-year invoice counter; next_number is the sequence the next sale gets."""
    __tablename__ = "invoice_sequences"

    year = db.Column(db.Integer, primary_key=True, autoincrement=False)
    next_number = db.Column(db.Integer, nullable=False)


def _reject_mutation(mapper, connection, target):
    raise ImmutableRecordError(
        f"{type(target).__name__} records are append-only",
        details={"id": getattr(target, "id", None)},
    )


for _model in (Transaction, TransactionItem):
    event.listen(_model, "before_update", _reject_mutation)
    event.listen(_model, "before_delete", _reject_mutation)
