# Overview: Typed failures raised by the catalog, checkout and ledger services.

from __future__ import annotations


class PosError(Exception):
    """Base for failures surfaced to API callers as structured results."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PosError, ValueError):
    """400-level input problem; rejected before any state change."""


class NotFoundError(PosError):
    status_code = 404


class ProductNotFound(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", details={"product_id": product_id})


class TransactionNotFound(NotFoundError):
    def __init__(self, key):
        super().__init__(f"Transaction {key} not found", details={"transaction": key})


class InsufficientStock(PosError):
    status_code = 409

    def __init__(self, *, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested,
                "available": available,
            },
        )


class EmptyCart(PosError):
    def __init__(self):
        super().__init__("No items in cart")


class MarginWarning(PosError):
    """Soft failure: re-submit with confirm_loss=true to proceed."""
    status_code = 422

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["require_confirmation"] = True
        return payload


class ConcurrencyConflict(PosError):
    status_code = 409


class ImmutableRecordError(PosError):
    """Raised when something tries to rewrite ledger or audit rows."""
    status_code = 409
