# exceptions.py

class RestaurantError(Exception):
    """
    Base for every domain condition that reaches the HTTP boundary.

    `message` is what the client sees. Anything diagnostic belongs in the
    log, never in the message.
    """
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidOrderInput(RestaurantError):
    status_code = 400
    error = "Bad Request"


class AuthenticationRequired(RestaurantError):
    """Kitchen token header absent or blank on a protected endpoint."""
    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Kitchen authentication token is required"):
        super().__init__(message)


class AuthorizationDenied(RestaurantError):
    """Kitchen token present but not the configured one."""
    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str = "Kitchen authentication token is invalid"):
        super().__init__(message)


class OrderNotFound(RestaurantError):
    status_code = 404
    error = "Not Found"

    def __init__(self, order_id):
        super().__init__(f"Order with id {order_id} not found")
        self.order_id = order_id


class ProductNotFound(RestaurantError):
    status_code = 404
    error = "Not Found"

    def __init__(self, product_id):
        super().__init__(f"Product with id {product_id} not found")
        self.product_id = product_id


class InvalidStatusTransition(RestaurantError):
    status_code = 409
    error = "Conflict"

    def __init__(self, current, requested):
        super().__init__(
            f"Invalid status transition from {_status_name(current)} to {_status_name(requested)}"
        )
        self.current = current
        self.requested = requested


class InactiveProduct(RestaurantError):
    """Product exists but cannot be ordered. Distinct from ProductNotFound."""
    status_code = 422
    error = "Unprocessable Entity"

    def __init__(self, product_id):
        super().__init__(f"Product with id {product_id} is inactive and cannot be ordered")
        self.product_id = product_id


class InvalidDateRange(RestaurantError):
    status_code = 422
    error = "Unprocessable Entity"


class EventPublicationFailure(RestaurantError):
    """
    Raised when the order placed event could not be delivered to the
    kitchen worker. The order that triggered it stays persisted.
    """
    status_code = 503
    error = "Service Unavailable"

    def __init__(self, message: str = "Message broker is temporarily unavailable", *, order_id=None):
        super().__init__(message)
        self.order_id = order_id


class InvalidEventContract(RestaurantError):
    status_code = 400
    error = "Bad Request"


def _status_name(status) -> str:
    if status is None:
        return "null"
    return getattr(status, "value", str(status))
