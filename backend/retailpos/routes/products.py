# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

# backend/retailpos/routes/products.py
"""
Product catalog routes.

Payloads use public field names: prices as 2dp decimals (selling_price,
cost_price) and GST as a percentage (gst_rate). Unknown fields are rejected.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import PosError
from ..models import Product
from ..schemas import RestockRequest
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload

PRODUCT_FIELDS = {
    "name", "sku", "barcode", "category",
    "selling_price", "cost_price", "gst_rate",
    "min_stock", "unit", "manufacturing_date", "expiry_date",
    "supplier", "batch_no", "section",
}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_FIELDS | {"stock"},
    required_on_create={"name", "selling_price", "cost_price"},
    non_blank_fields={"name"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_FIELDS,
    control_fields={"confirm_loss"},
    non_blank_fields={"name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List catalog products, ordered by name.

    Query params:
    - include_inactive: "true" to include soft-deleted products
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    products = catalog_service.list_products(include_inactive=include_inactive)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    return jsonify(product.to_dict()), 200


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        created = catalog_service.create_product(patch=patch)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(created.to_dict()), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """
    Update product fields.

    Setting both prices with selling_price < cost_price returns 422 with
    require_confirmation=true; re-submit with "confirm_loss": true to proceed.
    """
    payload = request.get_json(silent=True) or {}
    confirm_loss = payload.get("confirm_loss") is True

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        updated = catalog_service.update_product(
            product_id=product_id,
            patch=patch,
            confirm_loss=confirm_loss,
        )
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(updated.to_dict()), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Soft-delete: the product leaves the catalog but history keeps resolving it."""
    try:
        catalog_service.deactivate_product(product_id)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200


@products_bp.post("/<int:product_id>/restock")
def restock_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        restock = RestockRequest.from_payload(payload)
        product = catalog_service.restock(product_id, restock.quantity)
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to restock product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(product.to_dict()), 200
