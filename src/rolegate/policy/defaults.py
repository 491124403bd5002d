"""Built-in default policy.

Five roles in a single chain, each junior inheriting from the one above:

    visitor <- team_developer <- team_leader <- admin <- super_admin

Grants are incremental: each role is granted only what its senior lacks.
"""

from typing import Any

from rolegate.core.constants import DEFAULT_POLICY_MAX_ACTIVE_ROLES
from rolegate.policy.loader import parse_policy
from rolegate.policy.schemas import PolicyDocument


DEFAULT_ROLES: list[dict[str, Any]] = [
    {
        "id": "visitor",
        "name": "Visitor",
        "description": "Read-only access to published content",
    },
    {
        "id": "team_developer",
        "name": "Team Developer",
        "description": "Creates and edits content",
        "parent": "visitor",
    },
    {
        "id": "team_leader",
        "name": "Team Leader",
        "description": "Manages content and views team members",
        "parent": "team_developer",
    },
    {
        "id": "admin",
        "name": "Administrator",
        "description": "Manages users and roles",
        "parent": "team_leader",
    },
    {
        "id": "super_admin",
        "name": "Super Administrator",
        "description": "Full access including permission management",
        "parent": "admin",
    },
]


def _crud_buttons(prefix: str) -> list[dict[str, Any]]:
    return [
        {"code": f"{prefix}.view", "name": "View", "type": "button", "sort": 1},
        {"code": f"{prefix}.add", "name": "Add", "type": "button", "sort": 2},
        {"code": f"{prefix}.edit", "name": "Edit", "type": "button", "sort": 3},
        {"code": f"{prefix}.delete", "name": "Delete", "type": "button", "sort": 4},
    ]


DEFAULT_PERMISSIONS: list[dict[str, Any]] = [
    {
        "code": "dashboard",
        "name": "Dashboard",
        "type": "module",
        "path": "/dashboard",
        "icon": "dashboard",
        "sort": 1,
    },
    {
        "code": "system",
        "name": "System Management",
        "type": "module",
        "path": "/system",
        "icon": "setting",
        "sort": 2,
        "children": [
            {
                "code": "system.user",
                "name": "User Management",
                "type": "menu",
                "path": "/system/user",
                "icon": "user",
                "sort": 1,
                "children": _crud_buttons("system.user"),
            },
            {
                "code": "system.role",
                "name": "Role Management",
                "type": "menu",
                "path": "/system/role",
                "icon": "role",
                "sort": 2,
                "children": _crud_buttons("system.role"),
            },
            {
                "code": "system.permission",
                "name": "Permission Management",
                "type": "menu",
                "path": "/system/permission",
                "icon": "permission",
                "sort": 3,
                "children": [
                    {
                        "code": "system.permission.view",
                        "name": "View",
                        "type": "button",
                        "sort": 1,
                    },
                    {
                        "code": "system.permission.edit",
                        "name": "Edit",
                        "type": "button",
                        "sort": 2,
                    },
                ],
            },
        ],
    },
    {
        "code": "content",
        "name": "Content Management",
        "type": "module",
        "path": "/content",
        "icon": "content",
        "sort": 3,
        "children": [
            {
                "code": "content.document",
                "name": "Documents",
                "type": "menu",
                "path": "/content/document",
                "icon": "document",
                "sort": 1,
                "children": _crud_buttons("content.document"),
            },
            {
                "code": "content.knowledge",
                "name": "Knowledge Base",
                "type": "menu",
                "path": "/content/knowledge",
                "icon": "knowledge",
                "sort": 2,
                "children": _crud_buttons("content.knowledge"),
            },
        ],
    },
]


DEFAULT_GRANTS: dict[str, list[str]] = {
    "visitor": [
        "dashboard",
        "content",
        "content.document",
        "content.document.view",
        "content.knowledge",
        "content.knowledge.view",
    ],
    "team_developer": [
        "content.document.add",
        "content.document.edit",
        "content.knowledge.add",
        "content.knowledge.edit",
    ],
    "team_leader": [
        "content.document.delete",
        "content.knowledge.delete",
        "system",
        "system.user",
        "system.user.view",
    ],
    "admin": [
        "system.user.add",
        "system.user.edit",
        "system.user.delete",
        "system.role",
        "system.role.view",
        "system.role.add",
        "system.role.edit",
        "system.role.delete",
    ],
    "super_admin": [
        "system.permission",
        "system.permission.view",
        "system.permission.edit",
    ],
}


DEFAULT_CONSTRAINTS: list[dict[str, Any]] = [
    {
        "id": "max-active-roles",
        "name": "Maximum active roles",
        "description": f"A session may hold at most {DEFAULT_POLICY_MAX_ACTIVE_ROLES} roles",
        "kind": "cardinality",
        "max_roles": DEFAULT_POLICY_MAX_ACTIVE_ROLES,
        "constrained_roles": [role["id"] for role in DEFAULT_ROLES],
    },
]


def default_policy() -> PolicyDocument:
    """The built-in policy used when no policy file is configured."""
    return parse_policy(
        {
            "roles": DEFAULT_ROLES,
            "permissions": DEFAULT_PERMISSIONS,
            "grants": DEFAULT_GRANTS,
            "constraints": DEFAULT_CONSTRAINTS,
        }
    )
