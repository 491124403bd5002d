"""Unit tests for constraint evaluation.

These tests verify the ConstraintEngine logic including:
- Temporal windows, including windows that wrap past midnight
- Mutual exclusion, cardinality and separation of duty
- Assignment-time checks
"""

from datetime import UTC, datetime, time
from zoneinfo import ZoneInfo

import pydantic
import pytest

from rolegate.core.errors import (
    CardinalityViolation,
    MutualExclusionViolation,
    SeparationViolation,
    TemporalViolation,
)
from rolegate.modules.constraints.engine import ConstraintEngine, weekday_number
from rolegate.modules.constraints.models import (
    CardinalityConstraint,
    MutualExclusionConstraint,
    PrerequisiteConstraint,
    SeparationOfDutyConstraint,
    SeparationType,
    TemporalConstraint,
    parse_constraint,
)
from rolegate.modules.roles.models import Role
from rolegate.modules.sessions.models import Session


pytestmark = pytest.mark.unit

WEDNESDAY_10AM = datetime(2024, 1, 3, 10, 0, tzinfo=UTC)


def role(role_id: str) -> Role:
    return Role(id=role_id, name=role_id)


def session(*active: str, static: tuple[str, ...] = ()) -> Session:
    return Session(
        id="s1",
        user_id="u1",
        static_roles=frozenset({*active, *static}),
        active_roles=active,
        start_time=WEDNESDAY_10AM,
        last_activity_time=WEDNESDAY_10AM,
    )


def engine_at(moment: datetime, timezone=UTC) -> ConstraintEngine:
    return ConstraintEngine(clock=lambda: moment, timezone=timezone)


class TestWeekdayNumber:
    """Tests for Sunday-based weekday numbering."""

    def test_sunday_is_zero(self) -> None:
        assert weekday_number(datetime(2024, 1, 7, tzinfo=UTC)) == 0

    def test_saturday_is_six(self) -> None:
        assert weekday_number(datetime(2024, 1, 6, tzinfo=UTC)) == 6

    def test_wednesday(self) -> None:
        assert weekday_number(WEDNESDAY_10AM) == 3


class TestTemporal:
    """Tests for temporal constraints."""

    def constraint(self, **kwargs) -> TemporalConstraint:
        return TemporalConstraint(
            id="t1", name="Office hours", constrained_roles={"oncall"}, **kwargs
        )

    def test_inside_window(self) -> None:
        constraint = self.constraint(start_time=time(9), end_time=time(17))

        engine_at(WEDNESDAY_10AM).validate_activation(
            session(static=("oncall",)), role("oncall"), [constraint]
        )

    def test_bounds_are_inclusive(self) -> None:
        """Verify both the start and end minute are allowed."""
        constraint = self.constraint(start_time=time(10), end_time=time(10, 0))

        engine_at(WEDNESDAY_10AM.replace(second=59)).validate_activation(
            session(static=("oncall",)), role("oncall"), [constraint]
        )

    def test_outside_window(self) -> None:
        constraint = self.constraint(start_time=time(11), end_time=time(17))

        with pytest.raises(TemporalViolation) as exc_info:
            engine_at(WEDNESDAY_10AM).validate_activation(
                session(static=("oncall",)), role("oncall"), [constraint]
            )

        assert exc_info.value.details["constraint_id"] == "t1"
        assert exc_info.value.details["role_id"] == "oncall"

    def test_window_wrapping_midnight(self) -> None:
        """Verify 22:00-06:00 allows 23:30 and 05:00 but not noon."""
        constraint = self.constraint(start_time=time(22), end_time=time(6))
        target = session(static=("oncall",))

        engine_at(WEDNESDAY_10AM.replace(hour=23, minute=30)).validate_activation(
            target, role("oncall"), [constraint]
        )
        engine_at(WEDNESDAY_10AM.replace(hour=5)).validate_activation(
            target, role("oncall"), [constraint]
        )
        with pytest.raises(TemporalViolation):
            engine_at(WEDNESDAY_10AM.replace(hour=12)).validate_activation(
                target, role("oncall"), [constraint]
            )

    def test_disallowed_day(self) -> None:
        constraint = self.constraint(allowed_days={1, 2, 4, 5})

        with pytest.raises(TemporalViolation):
            engine_at(WEDNESDAY_10AM).validate_activation(
                session(static=("oncall",)), role("oncall"), [constraint]
            )

    def test_window_evaluated_in_configured_zone(self) -> None:
        """Verify 10:00 UTC is 05:00 in New York and outside 09-17."""
        constraint = self.constraint(start_time=time(9), end_time=time(17))

        with pytest.raises(TemporalViolation):
            engine_at(WEDNESDAY_10AM, ZoneInfo("America/New_York")).validate_activation(
                session(static=("oncall",)), role("oncall"), [constraint]
            )

    def test_temporal_ignored_at_assignment(self) -> None:
        constraint = self.constraint(start_time=time(11), end_time=time(12))

        engine_at(WEDNESDAY_10AM).validate_assignment([], role("oncall"), [constraint])

    def test_invalid_day_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            self.constraint(allowed_days={7})

    def test_half_window_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            self.constraint(start_time=time(9))


class TestActivation:
    """Tests for activation-time checks."""

    def test_cardinality(self) -> None:
        """Verify a second role is refused when one is the maximum."""
        constraint = CardinalityConstraint(
            id="c1", name="One role", max_roles=1, constrained_roles={"a", "b"}
        )

        with pytest.raises(CardinalityViolation) as exc_info:
            engine_at(WEDNESDAY_10AM).validate_activation(
                session("a", static=("b",)), role("b"), [constraint]
            )

        assert exc_info.value.details["max_roles"] == 1

    def test_cardinality_counts_all_active_roles(self) -> None:
        """Verify active roles outside the constraint still count."""
        constraint = CardinalityConstraint(
            id="c1", name="Two roles", max_roles=2, constrained_roles={"b"}
        )

        with pytest.raises(CardinalityViolation):
            engine_at(WEDNESDAY_10AM).validate_activation(
                session("x", "y", static=("b",)), role("b"), [constraint]
            )

    def test_mutual_exclusion(self) -> None:
        constraint = MutualExclusionConstraint(
            id="m1", name="Audit split", constrained_roles={"auditor", "accountant"}
        )

        with pytest.raises(MutualExclusionViolation) as exc_info:
            engine_at(WEDNESDAY_10AM).validate_activation(
                session("auditor", static=("accountant",)),
                role("accountant"),
                [constraint],
            )

        assert exc_info.value.details["conflicting_roles"] == ["auditor"]

    def test_mutual_exclusion_without_conflict(self) -> None:
        constraint = MutualExclusionConstraint(
            id="m1", name="Audit split", constrained_roles={"auditor", "accountant"}
        )

        engine_at(WEDNESDAY_10AM).validate_activation(
            session("visitor", static=("accountant",)), role("accountant"), [constraint]
        )

    def test_dynamic_separation(self) -> None:
        constraint = SeparationOfDutyConstraint(
            id="sod", name="Maker checker", constrained_roles={"maker", "checker"}
        )

        with pytest.raises(SeparationViolation):
            engine_at(WEDNESDAY_10AM).validate_activation(
                session("maker", static=("checker",)), role("checker"), [constraint]
            )

    def test_static_separation_passes_activation(self) -> None:
        constraint = SeparationOfDutyConstraint(
            id="sod",
            name="Maker checker",
            constrained_roles={"maker", "checker"},
            separation_type=SeparationType.STATIC,
        )

        engine_at(WEDNESDAY_10AM).validate_activation(
            session("maker", static=("checker",)), role("checker"), [constraint]
        )

    def test_inactive_constraint_ignored(self) -> None:
        constraint = CardinalityConstraint(
            id="c1", name="One role", max_roles=1, constrained_roles={"b"}, is_active=False
        )

        engine_at(WEDNESDAY_10AM).validate_activation(
            session("a", static=("b",)), role("b"), [constraint]
        )

    def test_constraint_for_other_roles_ignored(self) -> None:
        constraint = CardinalityConstraint(
            id="c1", name="One role", max_roles=1, constrained_roles={"z"}
        )

        engine_at(WEDNESDAY_10AM).validate_activation(
            session("a", static=("b",)), role("b"), [constraint]
        )

    def test_prerequisite_always_passes(self) -> None:
        constraint = PrerequisiteConstraint(
            id="p1", name="Needs visitor", constrained_roles={"b"}
        )

        engine_at(WEDNESDAY_10AM).validate_activation(
            session(static=("b",)), role("b"), [constraint]
        )


class TestAssignment:
    """Tests for assignment-time checks."""

    def test_static_separation(self) -> None:
        constraint = SeparationOfDutyConstraint(
            id="sod",
            name="Maker checker",
            constrained_roles={"maker", "checker"},
            separation_type=SeparationType.STATIC,
        )

        with pytest.raises(SeparationViolation):
            engine_at(WEDNESDAY_10AM).validate_assignment(
                ["maker"], role("checker"), [constraint]
            )

    def test_dynamic_separation_passes_assignment(self) -> None:
        constraint = SeparationOfDutyConstraint(
            id="sod", name="Maker checker", constrained_roles={"maker", "checker"}
        )

        engine_at(WEDNESDAY_10AM).validate_assignment(
            ["maker"], role("checker"), [constraint]
        )

    def test_max_users(self) -> None:
        constraint = CardinalityConstraint(
            id="c1", name="Single owner", max_users=1, constrained_roles={"owner"}
        )

        with pytest.raises(CardinalityViolation) as exc_info:
            engine_at(WEDNESDAY_10AM).validate_assignment(
                [], role("owner"), [constraint], role_holder_count=1
            )

        assert exc_info.value.details["max_users"] == 1

    def test_already_assigned_is_noop(self) -> None:
        constraint = MutualExclusionConstraint(
            id="m1", name="Audit split", constrained_roles={"auditor", "accountant"}
        )

        engine_at(WEDNESDAY_10AM).validate_assignment(
            ["auditor", "accountant"], role("accountant"), [constraint]
        )


class TestParseConstraint:
    """Tests for payload parsing."""

    def test_dispatches_on_kind(self) -> None:
        constraint = parse_constraint(
            {
                "id": 7,
                "name": "Night shift",
                "kind": "temporal",
                "start_time": "22:00",
                "end_time": "06:00",
                "allowed_days": [0, 6],
                "constrained_roles": ["oncall"],
            }
        )

        assert isinstance(constraint, TemporalConstraint)
        assert constraint.id == "7"
        assert constraint.allowed_days == frozenset({0, 6})

    def test_unknown_kind(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            parse_constraint({"id": "x", "name": "x", "kind": "quota"})
