# Overview: Error taxonomy shared by the sale and inventory services.

from __future__ import annotations


class PosError(Exception):
    """Base class for failures surfaced to callers of the sale/inventory engine."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(PosError):
    """Referenced product, customer or sale does not exist."""

    status_code = 404


class InsufficientStockError(PosError):
    """Requested quantity exceeds on-hand stock at commit time."""

    status_code = 409

    def __init__(self, product_name: str, *, requested: int | None = None, available: int | None = None):
        super().__init__(
            f"Insufficient stock for {product_name}",
            details={
                "product_name": product_name,
                "requested_quantity": requested,
                "available_quantity": available,
            },
        )
        self.product_name = product_name


class ConcurrentConflictError(PosError):
    """Lost a race against another transaction more times than we retry."""

    status_code = 409


class TransactionFailedError(PosError):
    """Any other storage failure inside the unit of work. Nothing was written."""

    status_code = 500
