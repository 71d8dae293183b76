class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when the acting user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced draft, line, request or payslip does not exist."""


class ImportFormatError(DomainError):
    """Raised once for an attendance export that cannot be read at all."""
