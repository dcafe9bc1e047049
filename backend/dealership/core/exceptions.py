"""
Exception hierarchy for the back office.

Services raise these deliberately; the API layer renders them with the
status code each class carries (see dealership.api.errors).
"""

from typing import Any, Optional


class DealershipError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        body: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


# ── Client errors ────────────────────────────────────────────────────────────
class ValidationError(DealershipError):
    """Malformed input (missing field, invalid enum value)."""

    status_code = 400
    default_message = "Invalid input"


class BadRequestError(DealershipError):
    """Business rule violation on otherwise well-formed input."""

    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(DealershipError):
    """Missing or invalid credentials."""

    status_code = 401
    default_message = "Not authenticated"


class InvalidTokenError(UnauthorizedError):
    """Token signature, expiry or payload is invalid."""

    default_message = "Invalid or expired token"


class WrongTokenTypeError(InvalidTokenError):
    """A structurally valid token of the wrong kind was presented."""

    def __init__(self, expected: str, actual: Optional[str]):
        super().__init__(
            f"Invalid token type: expected '{expected}'",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class ForbiddenError(DealershipError):
    """Authenticated but not permitted to act."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(DealershipError):
    """Entity absence."""

    status_code = 404
    default_message = "Not found"


class ConflictError(DealershipError):
    """Unique constraint violation (duplicate email)."""

    status_code = 409
    default_message = "Conflict"


# ── Server errors ────────────────────────────────────────────────────────────
class InternalError(DealershipError):
    """Unclassified persistence or transport failure. Never leaks internals."""

    status_code = 500
    default_message = "Internal server error"


# ── Collaborator errors (caught at the service boundary) ─────────────────────
class DuplicateEmailError(Exception):
    """Raised by the repository when the email unique constraint is violated."""

    def __init__(self, email: str):
        super().__init__(f"Email already in use: {email}")
        self.email = email


class AccountNotFoundError(Exception):
    """Raised by the repository when a row to update or delete is missing."""

    def __init__(self, account_id: Any):
        super().__init__(f"Account not found: {account_id}")
        self.account_id = account_id


class NotificationError(Exception):
    """An email provider rejected or failed to deliver a message."""

    def __init__(self, message: str, recipient: Optional[str] = None):
        super().__init__(message)
        self.recipient = recipient


class StorageError(Exception):
    """Object storage failure."""
