"""Permission decorators for guarding host operations.

The guarded callable must receive the caller's session as a
``session_id`` keyword argument.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

import structlog

from rolegate.core.errors import ForbiddenError
from rolegate.modules.permissions.checker import PermissionChecker


logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")


def _get_session_id(kwargs: dict[str, Any]) -> str | None:
    return cast("str | None", kwargs.get("session_id"))


def _guard(
    checker: PermissionChecker,
    codes: list[str],
    require_all: bool,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            session_id = _get_session_id(kwargs)

            if not session_id:
                raise ForbiddenError(
                    "Authentication required",
                    error_code="auth_required",
                )

            if require_all:
                has_perm = checker.has_all_permissions(session_id, codes)
            else:
                has_perm = checker.has_any_permission(session_id, codes)

            if not has_perm:
                logger.warning(
                    "permission_denied",
                    session_id=session_id,
                    required_permissions=codes,
                    require_all=require_all,
                    operation=func.__qualname__,
                )
                if require_all:
                    message = f"Missing required permissions: {', '.join(codes)}"
                else:
                    message = (
                        f"Missing required permission. Need one of: {', '.join(codes)}"
                    )
                raise ForbiddenError(
                    message,
                    error_code="permission_denied",
                    details={"required_permissions": codes},
                )

            return func(*args, **kwargs)

        return wrapper

    return decorator


def require_permission(
    checker: PermissionChecker, code: str
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that requires a specific permission.

    Usage:
        @require_permission(checker, "system.role.delete")
        def delete_role(role_id: str, *, session_id: str) -> None:
            ...

    Raises:
        ForbiddenError: If the session lacks the permission
    """
    return _guard(checker, [code], require_all=True)


def require_any_permission(
    checker: PermissionChecker, codes: list[str]
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that requires any one of the specified permissions.

    Usage:
        @require_any_permission(checker, ["content.document.view", "system"])
        def list_documents(*, session_id: str) -> list[str]:
            ...
    """
    return _guard(checker, list(codes), require_all=False)


def require_all_permissions(
    checker: PermissionChecker, codes: list[str]
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that requires all of the specified permissions."""
    return _guard(checker, list(codes), require_all=True)
