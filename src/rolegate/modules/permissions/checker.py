"""Permission checking logic.

This module resolves what a user or a session may do: roles are expanded
through the hierarchy, then their directly granted permissions are
collected from the catalog.
"""

from collections.abc import Iterable

from rolegate.core.errors import SessionExpiredError
from rolegate.modules.permissions.catalog import PermissionCatalog
from rolegate.modules.permissions.models import Permission, PermissionNode, PermissionType
from rolegate.modules.permissions.tree import PermissionTreeBuilder
from rolegate.modules.roles.graph import RoleGraph
from rolegate.modules.sessions.manager import SessionManager


class PermissionSet:
    """The resolved permissions of a user or session.

    Consumed by the presentation layer to render menus and guard actions.
    """

    def __init__(self, permissions: Iterable[Permission]) -> None:
        self._permissions = list(permissions)
        self._codes = {permission.code for permission in self._permissions}

    def __len__(self) -> int:
        return len(self._permissions)

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    @property
    def permissions(self) -> list[Permission]:
        return list(self._permissions)

    def can(self, code: str) -> bool:
        """Whether the permission with this code is held."""
        return code in self._codes

    def cannot(self, code: str) -> bool:
        return not self.can(code)

    def codes(self, permission_type: PermissionType | None = None) -> set[str]:
        """Codes of held permissions, optionally restricted to one type."""
        return {
            p.code
            for p in self._permissions
            if permission_type is None or p.type == permission_type
        }

    def menu_permissions(self) -> list[Permission]:
        """Modules and menus, sorted for navigation rendering."""
        return sorted(
            (
                p
                for p in self._permissions
                if p.type in (PermissionType.MODULE, PermissionType.MENU)
            ),
            key=lambda p: p.sort,
        )

    def button_permissions(self) -> list[Permission]:
        """Button-level permissions, used to show or hide actions."""
        return [p for p in self._permissions if p.type == PermissionType.BUTTON]

    def tree(self) -> list[PermissionNode]:
        """The held permissions arranged as a presentation tree."""
        return PermissionTreeBuilder().build(self._permissions)


class PermissionChecker:
    """Service for checking user and session permissions.

    A user's permissions come from every statically assigned role; a
    session's come only from the roles active in it. Both include
    everything inherited from senior roles.
    """

    def __init__(
        self,
        role_graph: RoleGraph,
        catalog: PermissionCatalog,
        sessions: SessionManager | None = None,
    ) -> None:
        self.role_graph = role_graph
        self.catalog = catalog
        self.sessions = sessions

    def get_user_permissions(self, static_role_ids: Iterable[str]) -> list[Permission]:
        """Get all permissions granted through a set of roles.

        Args:
            static_role_ids: Roles held directly

        Returns:
            Permissions of the roles and all their ancestors

        Raises:
            NotFoundError: If any role does not exist
        """
        return self._collect(static_role_ids, ignore_unknown=False)

    def for_user(self, static_role_ids: Iterable[str]) -> PermissionSet:
        return PermissionSet(self.get_user_permissions(static_role_ids))

    def for_session(self, session_id: str) -> PermissionSet:
        """Permissions of the roles active in a session.

        Raises:
            NotFoundError: If the session does not exist
            SessionExpiredError: If the session expired or ended
            RuntimeError: If the checker was built without a session manager
        """
        if self.sessions is None:
            raise RuntimeError("PermissionChecker has no SessionManager configured")

        session = self.sessions.get_session(session_id)
        if self.sessions.is_expired(session):
            raise SessionExpiredError(session_id)
        # Roles dropped from the graph since activation grant nothing.
        return PermissionSet(self._collect(session.active_roles, ignore_unknown=True))

    def has_permission(self, session_id: str, code: str) -> bool:
        """Check if a session holds a specific permission.

        Args:
            session_id: The session to check
            code: Permission code (e.g. "system.user.view")

        Returns:
            True if the session has the permission, False otherwise
        """
        return self.for_session(session_id).can(code)

    def has_any_permission(self, session_id: str, codes: Iterable[str]) -> bool:
        """Check if a session holds at least one of the permissions."""
        permission_set = self.for_session(session_id)
        return any(permission_set.can(code) for code in codes)

    def has_all_permissions(self, session_id: str, codes: Iterable[str]) -> bool:
        """Check if a session holds every one of the permissions."""
        permission_set = self.for_session(session_id)
        return all(permission_set.can(code) for code in codes)

    def _collect(
        self, role_ids: Iterable[str], ignore_unknown: bool
    ) -> list[Permission]:
        with self.role_graph.lock:
            effective = self.role_graph.effective_roles(
                role_ids, ignore_unknown=ignore_unknown
            )
            return self.catalog.permissions_for_roles(sorted(effective))
