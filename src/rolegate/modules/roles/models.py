"""Role models.

Roles form a single-inheritance hierarchy: each role names at most one
parent (its senior role) and inherits everything the parent can do.
"""

from pydantic import BaseModel, ConfigDict, Field

from rolegate.core.constants import MAX_DESCRIPTION_LENGTH, MAX_ROLE_NAME_LENGTH


class Role(BaseModel):
    """A named role in the hierarchy.

    Attributes:
        id: Opaque unique identifier
        name: Unique human-readable name (e.g. "admin")
        description: Optional description
        parent_id: Identifier of the senior role this role inherits from
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=MAX_ROLE_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    parent_id: str | None = None

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name}, parent_id={self.parent_id})>"


class RoleNode(BaseModel):
    """A role with its junior roles nested underneath, for display."""

    id: str
    name: str
    description: str | None = None
    children: list["RoleNode"] = Field(default_factory=list)
