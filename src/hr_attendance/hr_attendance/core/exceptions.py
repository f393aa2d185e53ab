class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is malformed."""


class NotFoundError(DomainError):
    """Raised when a user, attendance record or approver does not exist."""


class PolicyViolationError(DomainError):
    """Raised when a request breaks attendance/leave policy. Not retryable."""


class ConflictError(DomainError):
    """Raised when the per-day state does not allow the requested transition."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StorageError(DomainError):
    """Raised when the persistence layer fails."""


class DuplicateRecordError(StorageError):
    """Raised when the (user, date) uniqueness constraint rejects a write."""
