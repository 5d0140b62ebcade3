# Overview: Flask API routes for checkout and the transaction ledger.

# backend/retailpos/routes/transactions.py
"""Checkout and ledger routes. The ledger is read-only over HTTP."""

from flask import Blueprint, current_app, jsonify, request

from ..errors import PosError
from ..schemas import CheckoutRequest
from ..services import checkout_service, ledger_service
from ..services.analytics_service import ReportError, parse_range


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
def checkout_route():
    """
    Commit a sale.

    Body: {items: [{product_id, quantity}], payment_method, customer_phone?,
    discount?, cashier_id?, cashier_name?}

    Failures leave stock and the ledger untouched.
    """
    try:
        checkout_request = CheckoutRequest.from_payload(request.get_json(silent=True))
        tx = checkout_service.checkout(checkout_request)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to commit checkout")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(tx.to_dict()), 201


@transactions_bp.post("/quote")
def quote_route():
    """Price a cart without committing (cart preview)."""
    try:
        checkout_request = CheckoutRequest.from_payload(request.get_json(silent=True))
        quote = checkout_service.quote(checkout_request)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to quote cart")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(quote.to_dict()), 200


@transactions_bp.get("")
def list_transactions_route():
    """
    List transactions in storage order (oldest first).

    Query params:
    - start, end: ISO-8601 datetimes, inclusive
    """
    try:
        start_dt, end_dt = parse_range(request.args.get("start"), request.args.get("end"))
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    transactions = ledger_service.list_transactions(start=start_dt, end=end_dt)
    return jsonify({"items": [tx.to_dict() for tx in transactions], "count": len(transactions)}), 200


@transactions_bp.get("/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        tx = ledger_service.get_transaction(transaction_id)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify(tx.to_dict()), 200


@transactions_bp.get("/invoice/<invoice_no>")
def get_by_invoice_route(invoice_no: str):
    try:
        tx = ledger_service.get_by_invoice(invoice_no)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify(tx.to_dict()), 200
