"""Unit tests for permission decorators."""

import pytest

from rolegate.core.errors import ForbiddenError
from rolegate.modules.permissions.catalog import PermissionCatalog
from rolegate.modules.permissions.checker import PermissionChecker
from rolegate.modules.permissions.decorators import (
    require_all_permissions,
    require_any_permission,
    require_permission,
)
from rolegate.modules.permissions.models import Permission, PermissionType
from rolegate.modules.roles.graph import RoleGraph
from rolegate.modules.sessions.manager import SessionManager


pytestmark = pytest.mark.unit


@pytest.fixture
def checker(role_graph: RoleGraph, session_manager: SessionManager) -> PermissionChecker:
    catalog = PermissionCatalog(
        [
            Permission(id="read", code="doc.read", type=PermissionType.MODULE),
            Permission(id="write", code="doc.write", type=PermissionType.MODULE),
        ],
        {"visitor": ["read"], "admin": ["write"]},
    )
    return PermissionChecker(role_graph, catalog, session_manager)


class TestRequirePermission:
    """Tests for require_permission decorator."""

    def test_allows_holder(
        self, checker: PermissionChecker, session_manager: SessionManager
    ) -> None:
        @require_permission(checker, "doc.read")
        def read(doc_id: str, *, session_id: str) -> str:
            return doc_id

        session = session_manager.create_session("u1", ["visitor"])

        assert read("d1", session_id=session.id) == "d1"

    def test_denies_missing_permission(
        self, checker: PermissionChecker, session_manager: SessionManager
    ) -> None:
        @require_permission(checker, "doc.write")
        def write(*, session_id: str) -> None:
            raise AssertionError("should not run")

        session = session_manager.create_session("u1", ["visitor"])

        with pytest.raises(ForbiddenError) as exc_info:
            write(session_id=session.id)

        assert exc_info.value.error_code == "permission_denied"
        assert exc_info.value.details["required_permissions"] == ["doc.write"]

    def test_requires_session(self, checker: PermissionChecker) -> None:
        @require_permission(checker, "doc.read")
        def read(**kwargs: str) -> None:
            return None

        with pytest.raises(ForbiddenError) as exc_info:
            read()

        assert exc_info.value.error_code == "auth_required"


class TestRequireAnyAll:
    """Tests for the multi-permission decorators."""

    def test_any(self, checker: PermissionChecker, session_manager: SessionManager) -> None:
        @require_any_permission(checker, ["doc.write", "doc.read"])
        def view(*, session_id: str) -> bool:
            return True

        session = session_manager.create_session("u1", ["visitor"])

        assert view(session_id=session.id)

    def test_all(self, checker: PermissionChecker, session_manager: SessionManager) -> None:
        @require_all_permissions(checker, ["doc.write", "doc.read"])
        def manage(*, session_id: str) -> bool:
            return True

        visitor = session_manager.create_session("u1", ["visitor"])
        admin = session_manager.create_session("u2", ["admin"])

        with pytest.raises(ForbiddenError):
            manage(session_id=visitor.id)
        assert manage(session_id=admin.id)
