"""Role hierarchy."""

from rolegate.modules.roles.graph import RoleGraph
from rolegate.modules.roles.models import Role, RoleNode


__all__ = [
    "Role",
    "RoleGraph",
    "RoleNode",
]
