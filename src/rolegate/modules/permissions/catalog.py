"""Role to permission catalog.

Maps each role to the permissions granted to it directly. There is no
inheritance logic here: callers pass in ``RoleGraph.effective_roles``
when permissions inherited through the hierarchy are wanted.
"""

import threading
from collections.abc import Iterable, Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass

import structlog

from rolegate.core.errors import ConflictError, NotFoundError
from rolegate.modules.permissions.models import Permission


logger = structlog.get_logger()


@dataclass(frozen=True)
class _CatalogSnapshot:
    by_id: Mapping[str, Permission]
    by_code: Mapping[str, Permission]
    grants: Mapping[str, tuple[str, ...]]


def _dedupe(ids: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(ids))


class PermissionCatalog:
    """Read-mostly lookup of permissions granted to roles.

    Refreshes and grant changes swap in a whole new snapshot under a
    write lock; lookups read whichever snapshot is current.
    """

    def __init__(
        self,
        permissions: Iterable[Permission] = (),
        grants: Mapping[str, Iterable[str]] | None = None,
        lock: AbstractContextManager[bool] | None = None,
    ) -> None:
        self._write_lock = lock or threading.RLock()
        self._snapshot = _CatalogSnapshot(by_id={}, by_code={}, grants={})
        self.refresh(permissions, grants)

    def refresh(
        self,
        permissions: Iterable[Permission],
        grants: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        """Replace all permissions and grants.

        Args:
            permissions: Every permission known to the persistence layer
            grants: Role id -> ids of the permissions granted to that role

        Raises:
            ConflictError: If two permissions share an id or a code
            NotFoundError: If a grant references an unknown permission
        """
        by_id: dict[str, Permission] = {}
        by_code: dict[str, Permission] = {}
        for permission in permissions:
            if permission.id in by_id:
                raise ConflictError(
                    f"Duplicate permission id '{permission.id}'",
                    details={"permission_id": permission.id},
                )
            if permission.code in by_code:
                raise ConflictError(
                    f"Duplicate permission code '{permission.code}'",
                    details={"code": permission.code},
                )
            by_id[permission.id] = permission
            by_code[permission.code] = permission

        resolved: dict[str, tuple[str, ...]] = {}
        for role_id, permission_ids in (grants or {}).items():
            ids = _dedupe(permission_ids)
            for permission_id in ids:
                self._require(by_id, permission_id)
            resolved[role_id] = ids

        snapshot = _CatalogSnapshot(by_id=by_id, by_code=by_code, grants=resolved)
        with self._write_lock:
            self._snapshot = snapshot

        logger.info(
            "catalog_refreshed",
            permission_count=len(by_id),
            role_count=len(resolved),
        )

    def grant(self, role_id: str, *permission_ids: str) -> None:
        """Grant permissions directly to a role.

        Raises:
            NotFoundError: If any permission does not exist
        """
        with self._write_lock:
            snapshot = self._snapshot
            for permission_id in permission_ids:
                self._require(snapshot.by_id, permission_id)
            grants = dict(snapshot.grants)
            grants[role_id] = _dedupe((*grants.get(role_id, ()), *permission_ids))
            self._snapshot = _CatalogSnapshot(
                by_id=snapshot.by_id, by_code=snapshot.by_code, grants=grants
            )

        logger.info("permissions_granted", role_id=role_id, permission_ids=list(permission_ids))

    def revoke(self, role_id: str, *permission_ids: str) -> None:
        """Withdraw direct grants from a role; ids not granted are ignored."""
        with self._write_lock:
            snapshot = self._snapshot
            revoked = set(permission_ids)
            grants = dict(snapshot.grants)
            remaining = tuple(
                pid for pid in grants.get(role_id, ()) if pid not in revoked
            )
            if remaining:
                grants[role_id] = remaining
            else:
                grants.pop(role_id, None)
            self._snapshot = _CatalogSnapshot(
                by_id=snapshot.by_id, by_code=snapshot.by_code, grants=grants
            )

        logger.info("permissions_revoked", role_id=role_id, permission_ids=list(permission_ids))

    def get(self, permission_id: str) -> Permission:
        """Get a permission by id.

        Raises:
            NotFoundError: If the permission does not exist
        """
        return self._require(self._snapshot.by_id, permission_id)

    def get_by_code(self, code: str) -> Permission | None:
        """Look a permission up by its code."""
        return self._snapshot.by_code.get(code)

    def all(self) -> list[Permission]:
        """Every permission in the catalog."""
        return list(self._snapshot.by_id.values())

    def permission_ids_for_role(self, role_id: str) -> list[str]:
        """Ids of the permissions granted directly to one role."""
        return list(self._snapshot.grants.get(role_id, ()))

    def permissions_for_roles(self, role_ids: Iterable[str]) -> list[Permission]:
        """Union of the permissions granted directly to each role.

        Results are deduplicated by code; the first occurrence wins.

        Args:
            role_ids: Roles to collect grants for (already expanded by the caller)

        Returns:
            Permissions in role order, then grant order
        """
        snapshot = self._snapshot
        seen: dict[str, Permission] = {}
        for role_id in role_ids:
            for permission_id in snapshot.grants.get(role_id, ()):
                permission = snapshot.by_id[permission_id]
                seen.setdefault(permission.code, permission)
        return list(seen.values())

    @staticmethod
    def _require(by_id: Mapping[str, Permission], permission_id: str) -> Permission:
        permission = by_id.get(permission_id)
        if permission is None:
            raise NotFoundError(
                f"Permission '{permission_id}' not found",
                resource="permission",
                resource_id=permission_id,
            )
        return permission
