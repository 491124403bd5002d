"""Permission tree building.

Turns a flat permission set back into the module -> menu -> button tree
a UI renders. One pass builds a parent -> children index; the tree is then
assembled from that index.
"""

from collections.abc import Iterable

from rolegate.modules.permissions.models import Permission, PermissionNode, PermissionType


class PermissionTreeBuilder:
    """Builds and flattens permission presentation trees."""

    def build(self, flat_permissions: Iterable[Permission]) -> list[PermissionNode]:
        """Assemble the presentation tree.

        Roots are modules without a parent. Every level is sorted by
        ``sort`` (ties keep input order). Permissions whose parent is not in
        the input are left out, along with everything beneath them.

        Args:
            flat_permissions: Permissions to arrange

        Returns:
            Root nodes with their children attached
        """
        unique: dict[str, Permission] = {}
        for permission in flat_permissions:
            unique.setdefault(permission.id, permission)

        children: dict[str, list[Permission]] = {}
        roots: list[Permission] = []
        for permission in unique.values():
            if permission.parent_id is None:
                if permission.type == PermissionType.MODULE:
                    roots.append(permission)
            else:
                children.setdefault(permission.parent_id, []).append(permission)

        def to_node(permission: Permission) -> PermissionNode:
            return PermissionNode(
                id=permission.id,
                code=permission.code,
                name=permission.display_name,
                type=permission.type,
                sort=permission.sort,
                path=permission.path,
                icon=permission.icon,
                description=permission.description,
                children=[
                    to_node(child)
                    for child in _sorted(children.get(permission.id, []))
                ],
            )

        return [to_node(root) for root in _sorted(roots)]

    def flatten(self, nodes: Iterable[PermissionNode]) -> list[Permission]:
        """Flatten a tree back into permissions, in pre-order."""
        flat: list[Permission] = []

        def visit(node: PermissionNode, parent_id: str | None) -> None:
            flat.append(
                Permission(
                    id=node.id,
                    code=node.code,
                    name=node.name,
                    type=node.type,
                    parent_id=parent_id,
                    sort=node.sort,
                    path=node.path,
                    icon=node.icon,
                    description=node.description,
                )
            )
            for child in node.children:
                visit(child, node.id)

        for node in nodes:
            visit(node, None)
        return flat


def _sorted(permissions: list[Permission]) -> list[Permission]:
    return sorted(permissions, key=lambda permission: permission.sort)


def build_permission_tree(flat_permissions: Iterable[Permission]) -> list[PermissionNode]:
    """Convenience wrapper around ``PermissionTreeBuilder.build``."""
    return PermissionTreeBuilder().build(flat_permissions)
