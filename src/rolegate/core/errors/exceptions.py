"""Domain exceptions for the authorization core.

Every error the core raises derives from ``AppException`` and carries a
machine-readable ``error_code`` plus an HTTP-equivalent ``status_code``
so the host can map it to a response, a UI toast or a log entry.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all authorization errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP-equivalent status code for hosts
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a referenced role, permission, session or constraint is missing.

    Example:
        raise NotFoundError("Role not found", resource="role", resource_id=role_id)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when a registration clashes with existing data.

    Example:
        raise ConflictError("Role name already in use", details={"name": name})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ValidationError(AppException):
    """Raised when a policy document or payload fails validation.

    Example:
        raise ValidationError(
            "Invalid policy document",
            errors=[{"field": "roles.0.name", "message": "Field required"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class CycleError(AppException):
    """Raised when an inheritance edge would make a role its own ancestor."""

    message = "Inheritance would create a cycle"
    error_code = "inheritance_cycle"
    status_code = 409

    def __init__(
        self,
        junior_id: str,
        senior_id: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        details["junior_role_id"] = junior_id
        details["senior_role_id"] = senior_id
        super().__init__(message=message, details=details, **kwargs)


class SessionExpiredError(AppException):
    """Raised when a session is past its inactivity window or was ended."""

    message = "Session has expired"
    error_code = "session_expired"
    status_code = 401

    def __init__(
        self,
        session_id: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        details["session_id"] = session_id
        super().__init__(message=message, details=details, **kwargs)


class NotAuthorizedError(AppException):
    """Raised when activating a role the user was never statically granted."""

    message = "Role is not assigned to this user"
    error_code = "role_not_assigned"
    status_code = 403


class ForbiddenError(AppException):
    """Raised when a session lacks the permission a guarded call requires.

    Example:
        raise ForbiddenError(
            "Insufficient permissions",
            details={"required_permissions": ["system.role.edit"]}
        )
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class ConstraintViolation(AppException):
    """Raised when a constraint rejects a role activation or assignment.

    Subclasses identify the kind of constraint that failed.
    """

    message = "Constraint violated"
    error_code = "constraint_violation"
    status_code = 403

    def __init__(
        self,
        message: str | None = None,
        constraint_id: str | None = None,
        constraint_name: str | None = None,
        role_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if constraint_id:
            details["constraint_id"] = constraint_id
        if constraint_name:
            details["constraint_name"] = constraint_name
        if role_id:
            details["role_id"] = role_id
        super().__init__(message=message, details=details, **kwargs)


class TemporalViolation(ConstraintViolation):
    """Role activation attempted outside the allowed days or hours."""

    message = "Role cannot be activated at this time"
    error_code = "temporal_violation"


class MutualExclusionViolation(ConstraintViolation):
    """A mutually exclusive role is already held."""

    message = "Role is mutually exclusive with an active role"
    error_code = "mutual_exclusion_violation"


class CardinalityViolation(ConstraintViolation):
    """The role or user count limit has been reached."""

    message = "Role limit reached"
    error_code = "cardinality_violation"


class SeparationViolation(ConstraintViolation):
    """Separation of duty forbids holding both roles."""

    message = "Separation of duty violated"
    error_code = "separation_violation"
