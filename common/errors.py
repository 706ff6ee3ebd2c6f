"""
Error taxonomy shared by both services.

Each ServiceError carries the HTTP status it maps to and the public message
shown under `meta.error`; the exception's own str() keeps the diagnostic
detail for logs.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, detail: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(detail or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(ServiceError):
    """Bad input shape. Never retried."""

    status_code = 400
    public_message = "Invalid input data"

    def __init__(self, message: str = "Invalid input data") -> None:
        super().__init__(message, public_message=message)


class NotFoundError(ServiceError):
    status_code = 404
    public_message = "Not found"


class ProductNotFound(NotFoundError):
    public_message = "Product not found"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id


class OrderNotFound(NotFoundError):
    public_message = "Order not found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order with ID {order_id} not found")
        self.order_id = order_id


class InsufficientStockError(ServiceError):
    status_code = 400
    public_message = "Insufficient stock available"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidTransition(ServiceError):
    """Order status change that is not Processing -> Completed/Cancelled."""

    status_code = 400
    public_message = "Invalid order status transition"


class TransportError(ServiceError):
    """Remote catalog unreachable or answered unexpectedly. Recovered as 'absent'."""

    status_code = 502
    public_message = "Upstream service unavailable"


class ReconciliationFailure(ServiceError):
    """Stock write reported failure while applying a decrement event."""

    def __init__(self, product_id: str, new_quantity: int) -> None:
        super().__init__(f"Failed to write quantity {new_quantity} for product {product_id}")
        self.product_id = product_id
        self.new_quantity = new_quantity
