"""
Just Chiropractor Exception Hierarchy

Every error a caller can observe has a stable `kind`, an HTTP status and a
human-readable message. Internal detail (raw database errors, tracebacks)
never goes into these objects; it is logged where the error is raised.

Exception Hierarchy:
    ChiroBaseError
    ├── ValidationFailed
    ├── OperationNotAllowed
    ├── AuthenticationError
    │   ├── MissingCredential
    │   ├── InvalidCredential
    │   ├── ExpiredCredential
    │   ├── UnknownSubject
    │   └── DeactivatedAccount
    ├── InsufficientPrivilege
    ├── NotFound
    ├── Conflict
    │   └── SlugConflict
    └── StorageFailure
"""
from typing import Optional, Dict, Any, List


class ChiroBaseError(Exception):
    """
    Base exception for all domain errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context safe to return to the caller
    """

    status_code: int = 500
    default_code: str = "ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Error body for the {success, error} response envelope."""
        body: Dict[str, Any] = {
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# REQUEST SHAPE
# =============================================================================

class ValidationFailed(ChiroBaseError):
    """One or more field violations. Raised before any side effect."""
    status_code = 400
    default_code = "VALIDATION_FAILED"
    default_message = "Validation failed"

    def __init__(self, violations: List[Dict[str, str]], message: Optional[str] = None, **kwargs):
        self.violations = violations
        details = kwargs.pop("details", {})
        details["violations"] = violations
        super().__init__(message, details=details, **kwargs)


class OperationNotAllowed(ChiroBaseError):
    """Well-formed request that the business rules refuse."""
    status_code = 400
    default_code = "OPERATION_NOT_ALLOWED"
    default_message = "Operation not allowed"


# =============================================================================
# AUTHENTICATION / AUTHORIZATION
# =============================================================================

class AuthenticationError(ChiroBaseError):
    status_code = 401
    default_code = "AUTHENTICATION_FAILED"
    default_message = "Authentication failed"


class MissingCredential(AuthenticationError):
    default_code = "MISSING_CREDENTIAL"
    default_message = "Access denied. No token provided."


class InvalidCredential(AuthenticationError):
    default_code = "INVALID_CREDENTIAL"
    default_message = "Invalid token."


class ExpiredCredential(AuthenticationError):
    default_code = "EXPIRED_CREDENTIAL"
    default_message = "Token expired."


class UnknownSubject(AuthenticationError):
    default_code = "UNKNOWN_SUBJECT"
    default_message = "User not found."


class DeactivatedAccount(AuthenticationError):
    default_code = "DEACTIVATED_ACCOUNT"
    default_message = "Account is deactivated."


class InsufficientPrivilege(ChiroBaseError):
    status_code = 403
    default_code = "INSUFFICIENT_PRIVILEGE"
    default_message = "Access denied. Admin privileges required."

    def __init__(self, message: Optional[str] = None, required_role: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if required_role:
            details["required_role"] = required_role
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# STORAGE
# =============================================================================

class NotFound(ChiroBaseError):
    """Entity absent, or excluded by an active/published filter."""
    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class Conflict(ChiroBaseError):
    status_code = 409
    default_code = "CONFLICT"
    default_message = "Resource conflict"


class SlugConflict(Conflict):
    default_code = "SLUG_CONFLICT"
    default_message = "Could not generate a unique slug"

    def __init__(self, message: Optional[str] = None, slug: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if slug:
            details["slug"] = slug
        super().__init__(message, details=details, **kwargs)


class StorageFailure(ChiroBaseError):
    """Unexpected persistence error, including a failed audit append."""
    status_code = 500
    default_code = "STORAGE_FAILURE"
    default_message = "An internal error occurred. Please try again later."
