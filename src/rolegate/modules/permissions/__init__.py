"""Permissions: catalog, presentation tree and checks."""

from rolegate.modules.permissions.catalog import PermissionCatalog
from rolegate.modules.permissions.checker import PermissionChecker, PermissionSet
from rolegate.modules.permissions.models import Permission, PermissionNode, PermissionType
from rolegate.modules.permissions.tree import PermissionTreeBuilder, build_permission_tree


__all__ = [
    "Permission",
    "PermissionCatalog",
    "PermissionChecker",
    "PermissionNode",
    "PermissionSet",
    "PermissionTreeBuilder",
    "PermissionType",
    "build_permission_tree",
]
