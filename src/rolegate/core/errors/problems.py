"""RFC 7807 Problem Details rendering.

The core has no transport of its own; hosts call ``to_problem_detail``
to turn any ``AppException`` into a standard error body.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import Any

import structlog
from pydantic import BaseModel

from rolegate.config import get_settings
from rolegate.core.errors.exceptions import AppException


logger = structlog.get_logger()


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP-equivalent status code
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying this specific occurrence
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None

    model_config = {"extra": "allow"}


def _get_error_type_uri(error_code: str) -> str:
    """Generate a URI for the error type."""
    base_url = get_settings().problem_type_base_url.rstrip("/")
    return f"{base_url}/errors/{error_code}"


def to_problem_detail(exc: AppException, instance: str | None = None) -> ProblemDetail:
    """Convert an authorization error into a Problem Details body.

    Exception ``details`` are merged in as extension members unless they
    would shadow a standard member.

    Args:
        exc: The error raised by the core
        instance: Optional identifier of the failing occurrence (e.g. a path)

    Returns:
        The problem detail model
    """
    logger.warning(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )

    content: dict[str, Any] = ProblemDetail(
        type=_get_error_type_uri(exc.error_code),
        title=exc.error_code.replace("_", " ").title(),
        status=exc.status_code,
        detail=exc.message,
        instance=instance,
    ).model_dump(exclude_none=True)

    for key, value in exc.details.items():
        if key not in content:
            content[key] = value

    return ProblemDetail(**content)
