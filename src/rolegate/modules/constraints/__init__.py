"""Role constraints (RBAC2)."""

from rolegate.modules.constraints.engine import ConstraintEngine
from rolegate.modules.constraints.models import (
    CardinalityConstraint,
    Constraint,
    ConstraintKind,
    MutualExclusionConstraint,
    PrerequisiteConstraint,
    SeparationOfDutyConstraint,
    SeparationType,
    TemporalConstraint,
    parse_constraint,
)
from rolegate.modules.constraints.registry import ConstraintRegistry


__all__ = [
    "CardinalityConstraint",
    "Constraint",
    "ConstraintEngine",
    "ConstraintKind",
    "ConstraintRegistry",
    "MutualExclusionConstraint",
    "PrerequisiteConstraint",
    "SeparationOfDutyConstraint",
    "SeparationType",
    "TemporalConstraint",
    "parse_constraint",
]
