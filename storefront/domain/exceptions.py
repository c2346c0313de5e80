from typing import List, NamedTuple


class DomainException(Exception):
    pass


class FieldError(NamedTuple):
    field: str
    message: str


class ValidationError(DomainException):
    def __init__(self, errors: List[FieldError], message: str = "Invalid request data"):
        self.errors = list(errors)
        super().__init__(message)


class NotFoundError(DomainException):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class EventNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class ConflictError(DomainException):
    pass


class ExternalServiceError(DomainException):
    pass


class GeocodingServiceError(ExternalServiceError):
    pass


class CarrierServiceError(ExternalServiceError):
    pass


class PaymentServiceError(ExternalServiceError):
    pass


class InvalidAmountError(DomainException):
    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Amount must be greater than zero, got {amount}")


class InvalidTransitionError(DomainException):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}")


class PaymentNotConfirmedError(DomainException):
    pass


class PaymentMismatchError(DomainException):
    def __init__(self, expected: int, confirmed: int):
        self.expected = expected
        self.confirmed = confirmed
        super().__init__(f"Confirmed amount {confirmed} does not match order total {expected}")


class InsufficientStockError(DomainException):
    def __init__(self, product_id: str, available: int, required: int):
        self.product_id = product_id
        self.available = available
        self.required = required
        super().__init__(
            f"Not enough stock for product {product_id}. Available: {available}, required: {required}"
        )


class PersistenceError(DomainException):
    pass


class ConfigurationError(DomainException):
    pass
