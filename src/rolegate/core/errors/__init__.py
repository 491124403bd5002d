"""Error taxonomy with RFC 7807 Problem Details rendering."""

from rolegate.core.errors.exceptions import (
    AppException,
    CardinalityViolation,
    ConflictError,
    ConstraintViolation,
    CycleError,
    ForbiddenError,
    MutualExclusionViolation,
    NotAuthorizedError,
    NotFoundError,
    SeparationViolation,
    SessionExpiredError,
    TemporalViolation,
    ValidationError,
)
from rolegate.core.errors.problems import ProblemDetail, to_problem_detail


__all__ = [
    # Exceptions
    "AppException",
    "CardinalityViolation",
    "ConflictError",
    "ConstraintViolation",
    "CycleError",
    "ForbiddenError",
    "MutualExclusionViolation",
    "NotAuthorizedError",
    "NotFoundError",
    # Problem details
    "ProblemDetail",
    "SeparationViolation",
    "SessionExpiredError",
    "TemporalViolation",
    "ValidationError",
    "to_problem_detail",
]
