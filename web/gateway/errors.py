"""Error taxonomy shared by every app.

Each exception carries the HTTP status it maps to and a short, stable error
code. Domain code raises these; the DRF exception handler in
``gateway.exceptions`` turns them into the response envelope.
"""


class ShopError(Exception):
    """Base class for errors that are reported to API callers.

    Attributes:
        status_code: HTTP status returned to the caller.
        code: Short machine-readable error code.
        message: Human readable message safe to show to the caller.
    """

    status_code = 400
    code = "ERROR"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopError):
    """Malformed or semantically invalid input."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class EmptyOrder(ValidationError):
    code = "EMPTY_ORDER"
    default_message = "Order must contain at least one item"


class NotFound(ShopError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class InsufficientStock(ShopError):
    """Requested quantity exceeds the product's stock."""

    status_code = 400
    code = "INSUFFICIENT_STOCK"
    default_message = "Insufficient stock"


class Unauthorized(ShopError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class Forbidden(ShopError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Not authorized to perform this action"


class InvalidTransition(ShopError):
    """Illegal order status change."""

    status_code = 400
    code = "INVALID_TRANSITION"
    default_message = "Order cannot change to the requested status"


class GatewayError(ShopError):
    """The payment gateway failed, timed out or rejected the request."""

    status_code = 502
    code = "PAYMENT_GATEWAY_ERROR"
    default_message = "Payment gateway unavailable"


class InternalError(ShopError):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"


class IdempotencyConflict(ShopError):
    """An ``Idempotency-Key`` was reused with a different request."""

    status_code = 409
    code = "IDEMPOTENCY_CONFLICT"
    default_message = "Idempotency key already used with a different request"
