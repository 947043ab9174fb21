"""Domain exceptions for the booking and payment settlement system."""


class DomainError(Exception):
    """Base class for every domain error.

    ``code`` is the stable ``errorKind`` reported to API clients.
    """

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Validation ===


class ValidationError(DomainError):
    """Malformed interval, party size or other request field."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Invalid '{field}': {message}",
            code="ValidationError",
        )
        self.field = field


# === Catalog / Booking ===


class ResourceNotFoundError(DomainError):
    """The reservable resource does not exist or is inactive."""

    def __init__(self, resource_id: str):
        super().__init__(
            message=f"Resource not found: {resource_id}",
            code="ResourceNotFound",
        )
        self.resource_id = resource_id


class BookingNotFoundError(DomainError):
    """The booking does not exist."""

    def __init__(self, booking_id: str):
        super().__init__(
            message=f"Booking not found: {booking_id}",
            code="BookingNotFound",
        )
        self.booking_id = booking_id


class BookingAccessDeniedError(DomainError):
    """The caller is not the user who made the booking."""

    def __init__(self, booking_id: str, user_id: str):
        super().__init__(
            message=f"User {user_id} is not allowed to change booking {booking_id}",
            code="BookingAccessDenied",
        )
        self.booking_id = booking_id
        self.user_id = user_id


class UnavailableError(DomainError):
    """No capacity left on the resource for the requested interval."""

    def __init__(self, resource_id: str, remaining_capacity: int = 0):
        super().__init__(
            message=(
                f"Resource {resource_id} is not available for the requested interval"
            ),
            code="Unavailable",
        )
        self.resource_id = resource_id
        self.remaining_capacity = remaining_capacity


class InvalidStateTransitionError(DomainError):
    """The booking is not in a state that allows the operation."""

    def __init__(self, booking_id: str, current_status: str, operation: str):
        super().__init__(
            message=(
                f"Cannot {operation} booking {booking_id}: current status is '{current_status}'"
            ),
            code="InvalidStateTransition",
        )
        self.booking_id = booking_id
        self.current_status = current_status
        self.operation = operation


# === Coupons ===


class CouponError(DomainError):
    """Base class for coupon rule violations. Surfaced verbatim to the user."""

    def __init__(self, coupon_code: str, message: str, code: str):
        super().__init__(message=message, code=code)
        self.coupon_code = coupon_code


class CouponAlreadyExistsError(CouponError):
    def __init__(self, coupon_code: str):
        super().__init__(
            coupon_code,
            message=f"Coupon code '{coupon_code}' already exists",
            code="CouponAlreadyExists",
        )


class CouponNotFoundError(CouponError):
    def __init__(self, coupon_code: str):
        super().__init__(
            coupon_code,
            message=f"Coupon code '{coupon_code}' is invalid",
            code="CouponNotFound",
        )


class CouponExpiredError(CouponError):
    def __init__(self, coupon_code: str):
        super().__init__(
            coupon_code,
            message=f"Coupon '{coupon_code}' is not valid at this time",
            code="CouponExpired",
        )


class CouponNotApplicableError(CouponError):
    def __init__(self, coupon_code: str, category: str):
        super().__init__(
            coupon_code,
            message=f"Coupon '{coupon_code}' cannot be used for {category} bookings",
            code="CouponNotApplicable",
        )
        self.category = category


class CouponLimitReachedError(CouponError):
    def __init__(self, coupon_code: str, per_user: bool = False):
        message = (
            f"You have already used coupon '{coupon_code}' the maximum number of times"
            if per_user
            else f"Coupon '{coupon_code}' usage limit has been reached"
        )
        super().__init__(coupon_code, message=message, code="CouponLimitReached")
        self.per_user = per_user


class MinimumAmountNotMetError(CouponError):
    def __init__(self, coupon_code: str, minimum_amount):
        super().__init__(
            coupon_code,
            message=(
                f"Coupon '{coupon_code}' requires a minimum order amount of {minimum_amount:.2f}"
            ),
            code="MinimumAmountNotMet",
        )
        self.minimum_amount = minimum_amount


# === Payments ===


class InvalidSignatureError(DomainError):
    """Payment confirmation signature does not match."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Invalid payment signature for order {order_id}",
            code="InvalidSignature",
        )
        self.order_id = order_id


class UnknownOrderError(DomainError):
    """No payment order exists with the given id."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Unknown payment order: {order_id}",
            code="UnknownOrder",
        )
        self.order_id = order_id


class GatewayError(DomainError):
    """The payment gateway rejected or failed the request."""

    def __init__(self, message: str, code: str = "GatewayError"):
        super().__init__(message=message, code=code)


class GatewayTimeoutError(GatewayError):
    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Payment gateway did not answer within {timeout_seconds}s",
            code="GatewayTimeout",
        )
        self.timeout_seconds = timeout_seconds


# === Infrastructure-facing ===


class TemporarilyUnavailableError(DomainError):
    """Lock contention; safe to retry with backoff."""

    def __init__(self, message: str = "The resource is busy, please retry shortly"):
        super().__init__(message=message, code="TemporarilyUnavailable")


class IdempotencyConflictError(DomainError):
    """Same idempotency key reused with a different request body."""

    def __init__(self, idem_key: str, scope: str):
        super().__init__(
            message=(
                f"Idempotency key '{idem_key}' was already used in scope '{scope}' "
                "with a different request"
            ),
            code="IdempotencyConflict",
        )
        self.idem_key = idem_key
        self.scope = scope
