"""Order domain exceptions.

Raised by the order validator and OrderService when a business rule refuses
an operation. Nothing is written when one of these is raised. The API layer
translates them into the error envelope (see orders/api/views.py).
"""

from __future__ import annotations


class OrderError(Exception):
    """Base class. `code` is the stable machine-readable error code."""

    code = "order_error"
    default_message = "Order operation rejected."

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ProductNotFound(OrderError):
    code = "product_not_found"
    default_message = "Product not found."


class InsufficientStock(OrderError):
    code = "insufficient_stock"
    default_message = "Insufficient stock."


class PatientNotFound(OrderError):
    code = "patient_not_found"
    default_message = "Patient not found."


class PrescriptionLimitExceeded(OrderError):
    code = "prescription_limit_exceeded"
    default_message = "Exceeds monthly prescription limit."


class InvalidQuantity(OrderError):
    code = "invalid_quantity"
    default_message = "Quantity must be a positive number of grams."


class OrderNotFound(OrderError):
    code = "order_not_found"
    default_message = "Order not found."


class InvalidTransition(OrderError):
    code = "invalid_transition"
    default_message = "Order status transition not allowed."
