"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"
INVALID_STATE = "INVALID_STATE"
OUT_OF_ORDER = "OUT_OF_ORDER"
ALREADY_SIGNED = "ALREADY_SIGNED"
TRANSACTION_CONFLICT = "TRANSACTION_CONFLICT"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. invalid dates, missing required fields)."""

    pass


class ForbiddenError(DomainError):
    """Raised when the caller is authenticated but not allowed to act on the resource."""

    pass


class UnauthorizedError(DomainError):
    """Raised when the caller's credentials or session cannot be verified."""

    pass


class InvalidStateError(DomainError):
    """Raised when the resource is not in a state that allows the requested operation."""

    pass


class OutOfOrderError(DomainError):
    """Raised when the landlord tries to sign a contract before the tenant."""

    pass


class AlreadySignedError(DomainError):
    """Raised when a party tries to sign a contract it has already signed."""

    pass


class TransactionConflictError(Exception):
    """Raised when an atomic unit of work could not be committed after retrying.

    Infrastructure failure, not a business rule rejection.
    """

    pass
