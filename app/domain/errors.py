"""Domain exceptions for the bookings and payments system."""


class DomainError(Exception):
    """Base class for every domain error."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Validation / Auth ===


class ValidationError(DomainError):
    """Input payload failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Validation failed on '{field}': {message}",
            code="VALIDATION_ERROR",
        )
        self.field = field


class AuthError(DomainError):
    """Request carries no authenticated user context."""

    def __init__(self, message: str = "Unauthorized, please login"):
        super().__init__(message=message, code="UNAUTHORIZED")


class ConfigurationError(DomainError):
    """Required configuration is missing at start-up."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Missing required configuration: {', '.join(missing)}",
            code="CONFIGURATION_ERROR",
        )
        self.missing = missing


# === Lookup ===


class NotFoundError(DomainError):
    """Requested resource does not exist."""


class BookingNotFoundError(NotFoundError):
    """No booking carries the given transaction id."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Booking not found: {order_id}",
            code="BOOKING_NOT_FOUND",
        )
        self.order_id = order_id


class UnknownGatewayError(NotFoundError):
    """Gateway name is not registered or not enabled."""

    def __init__(self, gateway_name: str):
        super().__init__(
            message=f"Unknown payment gateway: {gateway_name}",
            code="UNKNOWN_GATEWAY",
        )
        self.gateway_name = gateway_name


# === Booking state ===


class InvalidBookingTransitionError(DomainError):
    """The booking's current state does not allow the operation."""

    def __init__(self, order_id: str, current_status: str, operation: str):
        super().__init__(
            message=f"Cannot {operation} booking {order_id}: current status '{current_status}'",
            code="INVALID_BOOKING_TRANSITION",
        )
        self.order_id = order_id
        self.current_status = current_status
        self.operation = operation


class OptimisticLockError(DomainError):
    """Concurrent update detected while saving a booking."""

    def __init__(self, order_id: str, expected_version: int, actual_version: int | None):
        super().__init__(
            message=f"Concurrent update on booking {order_id}: "
            f"expected version {expected_version}, actual version {actual_version}",
            code="OPTIMISTIC_LOCK_ERROR",
        )
        self.order_id = order_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class DuplicateOrderIdError(DomainError):
    """A booking with the same transaction id already exists."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"A booking already exists for order id {order_id}",
            code="DUPLICATE_ORDER_ID",
        )
        self.order_id = order_id


# === Payment gateways ===


class SignatureError(DomainError):
    """Webhook signature is missing or does not match."""

    def __init__(self, gateway_name: str):
        super().__init__(
            message=f"Invalid webhook signature for gateway {gateway_name}",
            code="INVALID_SIGNATURE",
        )
        self.gateway_name = gateway_name


class GatewayError(DomainError):
    """Payment gateway call failed (transport, HTTP or business error)."""

    def __init__(self, gateway_name: str, detail: str):
        super().__init__(
            message=f"Payment gateway {gateway_name} error: {detail}",
            code="GATEWAY_ERROR",
        )
        self.gateway_name = gateway_name
        self.detail = detail


class UnknownStatusError(DomainError):
    """Gateway reported a payment status outside its known vocabulary."""

    def __init__(self, gateway_name: str, raw_status: str | None):
        super().__init__(
            message=f"Unknown payment status from {gateway_name}: {raw_status}",
            code="UNKNOWN_PAYMENT_STATUS",
        )
        self.gateway_name = gateway_name
        self.raw_status = raw_status


# === Travel providers ===


class ProviderError(DomainError):
    """A travel provider rejected or failed the booking commit."""

    def __init__(self, provider: str, detail: str):
        super().__init__(
            message=f"Provider {provider} booking failed: {detail}",
            code="PROVIDER_ERROR",
        )
        self.provider = provider
        self.detail = detail
