"""Constraint models.

Each constraint kind is its own model carrying only the parameters it
needs; ``Constraint`` is the union of all kinds, discriminated on
``kind``:

    - mutual_exclusion: constrained roles may not be held together
    - cardinality: caps the number of roles held (and users per role)
    - prerequisite: reserved, currently always passes
    - temporal: role may only be activated on given days and hours
    - separation_of_duty: static (assignment) or dynamic (activation) split
"""

from datetime import time
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from rolegate.core.constants import MAX_DESCRIPTION_LENGTH, SATURDAY, SUNDAY


class ConstraintKind(StrEnum):
    """Supported constraint kinds."""

    MUTUAL_EXCLUSION = "mutual_exclusion"
    CARDINALITY = "cardinality"
    PREREQUISITE = "prerequisite"
    TEMPORAL = "temporal"
    SEPARATION_OF_DUTY = "separation_of_duty"


class SeparationType(StrEnum):
    """When a separation-of-duty constraint is enforced."""

    STATIC = "static"  # roles may not be assigned together
    DYNAMIC = "dynamic"  # roles may not be active together


class ConstraintBase(BaseModel):
    """Fields shared by every constraint kind.

    Attributes:
        id: Opaque unique identifier
        name: Human-readable name
        description: Optional description
        is_active: Inactive constraints are never evaluated
        constrained_roles: Role ids the constraint applies to
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    is_active: bool = True
    constrained_roles: frozenset[str] = frozenset()

    def applies_to(self, role_id: str) -> bool:
        """Whether this constraint is active and covers ``role_id``."""
        return self.is_active and role_id in self.constrained_roles


class MutualExclusionConstraint(ConstraintBase):
    kind: Literal["mutual_exclusion"] = "mutual_exclusion"


class CardinalityConstraint(ConstraintBase):
    """Caps how many roles a user holds and how many users hold a role.

    Attributes:
        max_roles: Maximum roles held (assigned or active) at once
        max_users: Maximum users a constrained role may be assigned to
    """

    kind: Literal["cardinality"] = "cardinality"
    max_roles: int | None = Field(None, ge=1)
    max_users: int | None = Field(None, ge=1)


class PrerequisiteConstraint(ConstraintBase):
    kind: Literal["prerequisite"] = "prerequisite"


class TemporalConstraint(ConstraintBase):
    """Restricts activation to a weekly window.

    Attributes:
        start_time: Start of the daily window (inclusive, minute resolution)
        end_time: End of the daily window (inclusive); earlier than
            ``start_time`` means the window wraps past midnight
        allowed_days: Weekdays, 0=Sunday .. 6=Saturday; None allows every day
    """

    kind: Literal["temporal"] = "temporal"
    start_time: time | None = None
    end_time: time | None = None
    allowed_days: frozenset[int] | None = None

    @field_validator("allowed_days")
    @classmethod
    def validate_days(cls, v: frozenset[int] | None) -> frozenset[int] | None:
        if v is not None and any(day < SUNDAY or day > SATURDAY for day in v):
            raise ValueError("allowed_days must be between 0 (Sunday) and 6 (Saturday)")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "TemporalConstraint":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be set together")
        return self


class SeparationOfDutyConstraint(ConstraintBase):
    kind: Literal["separation_of_duty"] = "separation_of_duty"
    separation_type: SeparationType = SeparationType.DYNAMIC


Constraint = Annotated[
    MutualExclusionConstraint
    | CardinalityConstraint
    | PrerequisiteConstraint
    | TemporalConstraint
    | SeparationOfDutyConstraint,
    Field(discriminator="kind"),
]

_constraint_adapter: TypeAdapter[Constraint] = TypeAdapter(Constraint)


def parse_constraint(data: dict[str, Any]) -> Constraint:
    """Validate a raw payload into the matching constraint model.

    Raises:
        pydantic.ValidationError: If the kind is unknown or parameters are invalid
    """
    return _constraint_adapter.validate_python(data)
