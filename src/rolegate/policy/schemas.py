"""Pydantic schemas for policy documents.

A policy document is the on-disk form of everything the core needs at
startup: roles, the permission tree, role grants and constraints.

    roles:
      - id: visitor
      - id: developer
        parent: visitor
    permissions:
      - code: content
        type: module
        children:
          - code: content.document
            type: menu
    grants:
      visitor: [content, content.document]
    constraints:
      - id: max-active
        name: At most three active roles
        kind: cardinality
        max_roles: 3
        constrained_roles: [visitor, developer]
"""

from pydantic import BaseModel, ConfigDict, Field

from rolegate.core.errors import ValidationError
from rolegate.modules.constraints.models import Constraint
from rolegate.modules.permissions.models import Permission, PermissionType
from rolegate.modules.roles.models import Role


class RoleSpec(BaseModel):
    """A role entry in a policy document."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(..., description="Role id")
    name: str | None = Field(None, description="Display name (defaults to the id)")
    description: str | None = Field(None, description="Role description")
    parent: str | None = Field(None, description="Id of the senior role")

    def to_role(self) -> Role:
        return Role(
            id=self.id,
            name=self.name or self.id,
            description=self.description,
            parent_id=self.parent,
        )


class PermissionSpec(BaseModel):
    """A permission entry, with its children nested underneath."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str = Field(..., description="Permission code")
    id: str | None = Field(None, description="Permission id (defaults to the code)")
    name: str = Field("", description="Display name")
    type: PermissionType = Field(..., description="module, menu or button")
    sort: int = Field(0, description="Sibling order")
    path: str | None = Field(None, description="Frontend route")
    icon: str | None = Field(None, description="Frontend icon")
    description: str | None = Field(None, description="Permission description")
    children: list["PermissionSpec"] = Field(default_factory=list)

    @property
    def permission_id(self) -> str:
        return self.id or self.code


class PolicyDocument(BaseModel):
    """Everything the core loads at startup."""

    roles: list[RoleSpec] = Field(default_factory=list)
    permissions: list[PermissionSpec] = Field(default_factory=list)
    grants: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Role id -> permission codes granted directly",
    )
    constraints: list[Constraint] = Field(default_factory=list)

    def to_roles(self) -> list[Role]:
        return [spec.to_role() for spec in self.roles]

    def flat_permissions(self) -> list[Permission]:
        """The nested permission tree flattened in pre-order."""
        flat: list[Permission] = []

        def visit(spec: PermissionSpec, parent_id: str | None) -> None:
            flat.append(
                Permission(
                    id=spec.permission_id,
                    code=spec.code,
                    name=spec.name,
                    type=spec.type,
                    parent_id=parent_id,
                    sort=spec.sort,
                    path=spec.path,
                    icon=spec.icon,
                    description=spec.description,
                )
            )
            for child in spec.children:
                visit(child, spec.permission_id)

        for spec in self.permissions:
            visit(spec, None)
        return flat

    def grant_ids(self) -> dict[str, list[str]]:
        """Grants with permission codes resolved to permission ids.

        Raises:
            ValidationError: If a grant names an unknown code or role
        """
        ids_by_code = {p.code: p.id for p in self.flat_permissions()}
        role_ids = {spec.id for spec in self.roles}
        errors: list[dict[str, str]] = []
        resolved: dict[str, list[str]] = {}

        for role_id, codes in self.grants.items():
            if role_id not in role_ids:
                errors.append(
                    {"field": f"grants.{role_id}", "message": "Unknown role"}
                )
                continue
            resolved[role_id] = []
            for code in codes:
                if code not in ids_by_code:
                    errors.append(
                        {
                            "field": f"grants.{role_id}",
                            "message": f"Unknown permission code '{code}'",
                        }
                    )
                else:
                    resolved[role_id].append(ids_by_code[code])

        if errors:
            raise ValidationError("Invalid policy grants", errors=errors)
        return resolved
