"""Policy documents: the roles, permissions, grants and constraints loaded at startup."""

from rolegate.policy.defaults import default_policy
from rolegate.policy.loader import load_policy, parse_policy
from rolegate.policy.schemas import PermissionSpec, PolicyDocument, RoleSpec


__all__ = [
    "PermissionSpec",
    "PolicyDocument",
    "RoleSpec",
    "default_policy",
    "load_policy",
    "parse_policy",
]
