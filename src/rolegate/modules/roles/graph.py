"""Role inheritance graph.

Roles live in an arena indexed by id; the hierarchy is nothing more than
each role's ``parent_id``. Ancestor and descendant queries are iterative
walks over the arena.

Writers serialize on a lock and publish a complete new snapshot, so
readers never lock and never observe a half-applied change. The lock may
be shared with the permission catalog and constraint registry; readers
that combine several of them hold it to see one consistent policy.
"""

import threading
from collections.abc import Iterable, Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field

import structlog

from rolegate.core.errors import ConflictError, CycleError, NotFoundError
from rolegate.modules.roles.models import Role, RoleNode


logger = structlog.get_logger()


@dataclass(frozen=True)
class _GraphSnapshot:
    roles: Mapping[str, Role]
    children: Mapping[str, tuple[str, ...]]
    # Filled lazily by readers; values only depend on this snapshot.
    ancestor_cache: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _index_children(roles: Mapping[str, Role]) -> dict[str, tuple[str, ...]]:
    children: dict[str, list[str]] = {}
    for role in roles.values():
        if role.parent_id is not None:
            children.setdefault(role.parent_id, []).append(role.id)
    return {parent_id: tuple(ids) for parent_id, ids in children.items()}


def _ensure_acyclic(roles: Mapping[str, Role]) -> None:
    """Raise CycleError if any parent chain loops back on itself."""
    verified: set[str] = set()
    for start in roles:
        path: list[str] = []
        on_path: set[str] = set()
        current: str | None = start
        while current is not None and current not in verified:
            if current in on_path:
                parent_id = roles[current].parent_id or current
                raise CycleError(
                    current,
                    parent_id,
                    message=f"Role '{current}' is its own ancestor",
                )
            on_path.add(current)
            path.append(current)
            current = roles[current].parent_id
        verified.update(path)


class RoleGraph:
    """In-memory single-parent role hierarchy.

    A junior role inherits every permission of its senior (parent) role,
    transitively. The graph guarantees the parent relation never forms a
    cycle.
    """

    def __init__(
        self,
        roles: Iterable[Role] = (),
        lock: AbstractContextManager[bool] | None = None,
    ) -> None:
        self._write_lock = lock or threading.RLock()
        self._snapshot = _GraphSnapshot(roles={}, children={})
        self.load(roles)

    @property
    def lock(self) -> AbstractContextManager[bool]:
        """Writer lock; hold it to read the graph together with related state."""
        return self._write_lock

    # ------------------------------------------------------------------
    # Bulk refresh and registration
    # ------------------------------------------------------------------

    def load(self, roles: Iterable[Role]) -> None:
        """Replace the whole hierarchy with a freshly loaded role set.

        Args:
            roles: Every role known to the persistence layer

        Raises:
            ConflictError: If two roles share an id or a name
            NotFoundError: If a role names a parent that is not in the set
            CycleError: If the parent links form a cycle
        """
        by_id: dict[str, Role] = {}
        names: set[str] = set()
        for role in roles:
            if role.id in by_id:
                raise ConflictError(
                    f"Duplicate role id '{role.id}'", details={"role_id": role.id}
                )
            if role.name in names:
                raise ConflictError(
                    f"Duplicate role name '{role.name}'", details={"name": role.name}
                )
            by_id[role.id] = role
            names.add(role.name)

        for role in by_id.values():
            if role.parent_id is not None and role.parent_id not in by_id:
                raise NotFoundError(
                    f"Parent role '{role.parent_id}' of '{role.id}' not found",
                    resource="role",
                    resource_id=role.parent_id,
                )

        _ensure_acyclic(by_id)

        snapshot = _GraphSnapshot(roles=by_id, children=_index_children(by_id))
        with self._write_lock:
            self._snapshot = snapshot

        logger.info("role_graph_loaded", role_count=len(by_id))

    def add_role(self, role: Role) -> Role:
        """Register a new role.

        Raises:
            ConflictError: If the id or name is already taken
            NotFoundError: If the declared parent does not exist
        """
        with self._write_lock:
            snapshot = self._snapshot
            if role.id in snapshot.roles:
                raise ConflictError(
                    f"Role '{role.id}' already exists", details={"role_id": role.id}
                )
            if any(existing.name == role.name for existing in snapshot.roles.values()):
                raise ConflictError(
                    f"Role name '{role.name}' already in use",
                    details={"name": role.name},
                )
            if role.parent_id is not None:
                self._require(snapshot, role.parent_id)

            roles = dict(snapshot.roles)
            roles[role.id] = role
            self._snapshot = _GraphSnapshot(
                roles=roles,
                children=_index_children(roles),
                ancestor_cache=dict(snapshot.ancestor_cache),
            )

        logger.info("role_added", role_id=role.id, parent_id=role.parent_id)
        return role

    def remove_role(self, role_id: str) -> Role:
        """Remove a role; its direct juniors become roots.

        Sessions still holding the role gain nothing from it;
        ``AuthorizationCore.remove_role`` also withdraws it from them.

        Raises:
            NotFoundError: If the role does not exist
        """
        with self._write_lock:
            snapshot = self._snapshot
            removed = self._require(snapshot, role_id)
            stale = {role_id, *self._descendants_in(snapshot, role_id)}

            roles = dict(snapshot.roles)
            del roles[role_id]
            for child_id in snapshot.children.get(role_id, ()):
                roles[child_id] = roles[child_id].model_copy(update={"parent_id": None})

            self._snapshot = _GraphSnapshot(
                roles=roles,
                children=_index_children(roles),
                ancestor_cache={
                    key: chain
                    for key, chain in snapshot.ancestor_cache.items()
                    if key not in stale
                },
            )

        logger.info("role_removed", role_id=role_id)
        return removed

    # ------------------------------------------------------------------
    # Inheritance edges
    # ------------------------------------------------------------------

    def add_inheritance(self, junior_id: str, senior_id: str) -> Role:
        """Make ``senior_id`` the parent of ``junior_id``.

        Replaces any existing parent of the junior role.

        Args:
            junior_id: The role that will inherit
            senior_id: The role being inherited from

        Returns:
            The updated junior role

        Raises:
            NotFoundError: If either role does not exist
            CycleError: If the senior role already descends from the junior
        """
        with self._write_lock:
            snapshot = self._snapshot
            junior = self._require(snapshot, junior_id)
            self._require(snapshot, senior_id)

            if junior_id == senior_id or junior_id in self._ancestors_in(
                snapshot, senior_id
            ):
                raise CycleError(
                    junior_id,
                    senior_id,
                    message=(
                        f"Role '{senior_id}' already inherits from '{junior_id}'"
                    ),
                )

            if junior.parent_id == senior_id:
                return junior

            self._publish_parent(snapshot, junior, senior_id)
            updated = self._snapshot.roles[junior_id]

        logger.info(
            "role_inheritance_added", junior_role_id=junior_id, senior_role_id=senior_id
        )
        return updated

    def remove_inheritance(self, junior_id: str) -> Role:
        """Detach a role from its parent.

        Returns:
            The updated (now root) role

        Raises:
            NotFoundError: If the role does not exist or has no parent
        """
        with self._write_lock:
            snapshot = self._snapshot
            junior = self._require(snapshot, junior_id)
            if junior.parent_id is None:
                raise NotFoundError(
                    f"Role '{junior_id}' has no parent",
                    resource="role_inheritance",
                    resource_id=junior_id,
                )
            previous_parent = junior.parent_id
            self._publish_parent(snapshot, junior, None)
            updated = self._snapshot.roles[junior_id]

        logger.info(
            "role_inheritance_removed",
            junior_role_id=junior_id,
            senior_role_id=previous_parent,
        )
        return updated

    def _publish_parent(
        self, snapshot: _GraphSnapshot, junior: Role, parent_id: str | None
    ) -> None:
        # Caller holds the write lock.
        stale = {junior.id, *self._descendants_in(snapshot, junior.id)}
        roles = dict(snapshot.roles)
        roles[junior.id] = junior.model_copy(update={"parent_id": parent_id})
        self._snapshot = _GraphSnapshot(
            roles=roles,
            children=_index_children(roles),
            ancestor_cache={
                key: chain
                for key, chain in snapshot.ancestor_cache.items()
                if key not in stale
            },
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __contains__(self, role_id: object) -> bool:
        return role_id in self._snapshot.roles

    def __len__(self) -> int:
        return len(self._snapshot.roles)

    def roles(self) -> list[Role]:
        """All roles in registration order."""
        return list(self._snapshot.roles.values())

    def get(self, role_id: str) -> Role:
        """Get a role by id.

        Raises:
            NotFoundError: If the role does not exist
        """
        return self._require(self._snapshot, role_id)

    def find_by_name(self, name: str) -> Role | None:
        """Look a role up by its unique name."""
        for role in self._snapshot.roles.values():
            if role.name == name:
                return role
        return None

    def parent(self, role_id: str) -> Role | None:
        """The senior role ``role_id`` inherits from, if any."""
        snapshot = self._snapshot
        role = self._require(snapshot, role_id)
        if role.parent_id is None:
            return None
        return snapshot.roles[role.parent_id]

    def ancestors(self, role_id: str) -> list[str]:
        """Ancestor chain from the immediate parent up to the root.

        Raises:
            NotFoundError: If the role does not exist
        """
        snapshot = self._snapshot
        self._require(snapshot, role_id)
        return list(self._ancestors_in(snapshot, role_id))

    def descendants(self, role_id: str) -> list[str]:
        """All transitive juniors of a role, in pre-order.

        Siblings keep their registration order.

        Raises:
            NotFoundError: If the role does not exist
        """
        snapshot = self._snapshot
        self._require(snapshot, role_id)
        return self._descendants_in(snapshot, role_id)

    def level(self, role_id: str) -> int:
        """Depth of a role below its root (roots are level 0)."""
        return len(self.ancestors(role_id))

    def effective_roles(
        self, static_role_ids: Iterable[str], ignore_unknown: bool = False
    ) -> set[str]:
        """Expand roles with everything they inherit.

        Args:
            static_role_ids: Roles held directly
            ignore_unknown: Skip ids the graph does not know instead of raising

        Returns:
            The given roles together with all of their ancestors

        Raises:
            NotFoundError: If any role does not exist and ``ignore_unknown``
                is false
        """
        snapshot = self._snapshot
        effective: set[str] = set()
        for role_id in static_role_ids:
            if ignore_unknown and role_id not in snapshot.roles:
                continue
            self._require(snapshot, role_id)
            effective.add(role_id)
            effective.update(self._ancestors_in(snapshot, role_id))
        return effective

    def hierarchy_tree(self) -> list[RoleNode]:
        """The whole hierarchy as nested nodes, roots first."""
        snapshot = self._snapshot

        def build(role_id: str) -> RoleNode:
            role = snapshot.roles[role_id]
            return RoleNode(
                id=role.id,
                name=role.name,
                description=role.description,
                children=[build(child) for child in snapshot.children.get(role_id, ())],
            )

        return [
            build(role.id)
            for role in snapshot.roles.values()
            if role.parent_id is None
        ]

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(snapshot: _GraphSnapshot, role_id: str) -> Role:
        role = snapshot.roles.get(role_id)
        if role is None:
            raise NotFoundError(
                f"Role '{role_id}' not found", resource="role", resource_id=role_id
            )
        return role

    @staticmethod
    def _ancestors_in(snapshot: _GraphSnapshot, role_id: str) -> tuple[str, ...]:
        cached = snapshot.ancestor_cache.get(role_id)
        if cached is not None:
            return cached

        chain: list[str] = []
        current = snapshot.roles[role_id].parent_id
        while current is not None:
            chain.append(current)
            current = snapshot.roles[current].parent_id

        result = tuple(chain)
        snapshot.ancestor_cache[role_id] = result
        return result

    @staticmethod
    def _descendants_in(snapshot: _GraphSnapshot, role_id: str) -> list[str]:
        result: list[str] = []
        stack = list(reversed(snapshot.children.get(role_id, ())))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(snapshot.children.get(current, ())))
        return result
