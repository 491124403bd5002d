"""Permission models.

Permissions form their own presentation tree (module -> menu -> button),
independent of the role hierarchy:

    - type="module", code="system"                  -> top-level navigation entry
    - type="menu",   code="system.role"             -> page inside a module
    - type="button", code="system.role.edit"        -> action guarded on a page
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from rolegate.core.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_PERMISSION_CODE_LENGTH,
    MAX_PERMISSION_NAME_LENGTH,
)


class PermissionType(StrEnum):
    """Presentation level of a permission."""

    MODULE = "module"
    MENU = "menu"
    BUTTON = "button"


class Permission(BaseModel):
    """A single grantable permission.

    Attributes:
        id: Opaque unique identifier
        code: Unique machine-readable key (e.g. "system.role.edit")
        name: Display name
        type: Module, menu or button
        parent_id: Parent in the presentation tree
        sort: Sibling order, ascending
        path: Frontend route for modules and menus
        icon: Frontend icon name
        description: Optional description
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=MAX_PERMISSION_CODE_LENGTH)
    name: str = Field("", max_length=MAX_PERMISSION_NAME_LENGTH)
    type: PermissionType
    parent_id: str | None = None
    sort: int = 0
    path: str | None = None
    icon: str | None = None
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @property
    def display_name(self) -> str:
        """The name, falling back to the code."""
        return self.name or self.code

    def __repr__(self) -> str:
        return f"<Permission({self.code}, type={self.type.value})>"


class PermissionNode(BaseModel):
    """A permission with its children attached, as rendered by a UI."""

    id: str
    code: str
    name: str
    type: PermissionType
    sort: int
    path: str | None = None
    icon: str | None = None
    description: str | None = None
    children: list["PermissionNode"] = Field(default_factory=list)
