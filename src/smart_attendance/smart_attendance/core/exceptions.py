class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data or configuration violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when a device presents an invalid token."""


class PersistenceError(DomainError):
    """Raised when a repository write keeps failing after retries."""


class NotFoundError(DomainError):
    """Raised when the referenced entity does not exist."""
