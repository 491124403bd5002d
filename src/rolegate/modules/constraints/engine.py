"""Constraint evaluation.

The engine is a pure decision procedure: given a session (or a user's
assigned roles), a candidate role and the known constraints, it either
returns or raises the ``ConstraintViolation`` subclass for the first
constraint that rejects the candidate. It never mutates its inputs.
"""

from collections.abc import Callable, Collection, Iterable
from datetime import UTC, datetime, time, tzinfo
from typing import assert_never

from rolegate.core.errors import (
    CardinalityViolation,
    MutualExclusionViolation,
    SeparationViolation,
    TemporalViolation,
)
from rolegate.modules.constraints.models import (
    CardinalityConstraint,
    Constraint,
    MutualExclusionConstraint,
    PrerequisiteConstraint,
    SeparationOfDutyConstraint,
    SeparationType,
    TemporalConstraint,
)
from rolegate.modules.roles.models import Role
from rolegate.modules.sessions.models import Session


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def weekday_number(moment: datetime) -> int:
    """Day of week as 0=Sunday .. 6=Saturday."""
    return (moment.weekday() + 1) % 7


def _within_window(current: time, start: time, end: time) -> bool:
    if start <= end:
        return start <= current <= end
    # Window wraps past midnight, e.g. 22:00 - 06:00
    return current >= start or current <= end


class ConstraintEngine:
    """Evaluates constraints against a proposed activation or assignment.

    Args:
        clock: Returns the current time; temporal checks use it
        timezone: Zone the temporal windows are expressed in
    """

    def __init__(self, clock: Clock | None = None, timezone: tzinfo = UTC) -> None:
        self._clock = clock or utc_now
        self._timezone = timezone

    def validate_activation(
        self,
        session: Session,
        candidate_role: Role,
        constraints: Iterable[Constraint],
    ) -> None:
        """Check that ``candidate_role`` may be switched on in ``session``.

        Only active constraints naming the candidate role are evaluated.

        Raises:
            TemporalViolation: Outside the allowed days or hours
            MutualExclusionViolation: A mutually exclusive role is active
            CardinalityViolation: The session already holds ``max_roles`` roles
            SeparationViolation: A dynamically separated role is active
        """
        active = set(session.active_roles)

        for constraint in constraints:
            if not constraint.applies_to(candidate_role.id):
                continue

            match constraint:
                case TemporalConstraint():
                    self._check_temporal(constraint, candidate_role)
                case MutualExclusionConstraint():
                    _check_exclusive(
                        constraint, candidate_role, active, MutualExclusionViolation
                    )
                case CardinalityConstraint():
                    if (
                        constraint.max_roles is not None
                        and len(active) >= constraint.max_roles
                    ):
                        raise CardinalityViolation(
                            f"At most {constraint.max_roles} role(s) may be active "
                            f"in a session",
                            constraint_id=constraint.id,
                            constraint_name=constraint.name,
                            role_id=candidate_role.id,
                            details={
                                "max_roles": constraint.max_roles,
                                "active_roles": sorted(active),
                            },
                        )
                case SeparationOfDutyConstraint():
                    if constraint.separation_type == SeparationType.DYNAMIC:
                        _check_exclusive(
                            constraint, candidate_role, active, SeparationViolation
                        )
                case PrerequisiteConstraint():
                    pass
                case _:
                    assert_never(constraint)

    def validate_assignment(
        self,
        assigned_role_ids: Collection[str],
        candidate_role: Role,
        constraints: Iterable[Constraint],
        role_holder_count: int = 0,
    ) -> None:
        """Check that ``candidate_role`` may be statically assigned to a user.

        Temporal constraints govern activation only and pass here, as do
        dynamic separation-of-duty constraints.

        Args:
            assigned_role_ids: Roles the user already holds
            candidate_role: Role about to be assigned
            constraints: Known constraints
            role_holder_count: Users currently holding ``candidate_role``

        Raises:
            MutualExclusionViolation: A mutually exclusive role is assigned
            CardinalityViolation: The user or role limit has been reached
            SeparationViolation: A statically separated role is assigned
        """
        assigned = set(assigned_role_ids)
        if candidate_role.id in assigned:
            return

        for constraint in constraints:
            if not constraint.applies_to(candidate_role.id):
                continue

            match constraint:
                case MutualExclusionConstraint():
                    _check_exclusive(
                        constraint, candidate_role, assigned, MutualExclusionViolation
                    )
                case CardinalityConstraint():
                    _check_assignment_cardinality(
                        constraint, candidate_role, assigned, role_holder_count
                    )
                case SeparationOfDutyConstraint():
                    if constraint.separation_type == SeparationType.STATIC:
                        _check_exclusive(
                            constraint, candidate_role, assigned, SeparationViolation
                        )
                case TemporalConstraint() | PrerequisiteConstraint():
                    pass
                case _:
                    assert_never(constraint)

    def _check_temporal(self, constraint: TemporalConstraint, candidate_role: Role) -> None:
        now = self._clock().astimezone(self._timezone)

        if (
            constraint.allowed_days is not None
            and weekday_number(now) not in constraint.allowed_days
        ):
            raise TemporalViolation(
                "Role cannot be activated on this day",
                constraint_id=constraint.id,
                constraint_name=constraint.name,
                role_id=candidate_role.id,
                details={"allowed_days": sorted(constraint.allowed_days)},
            )

        if constraint.start_time is not None and constraint.end_time is not None:
            current = now.time().replace(second=0, microsecond=0, tzinfo=None)
            if not _within_window(current, constraint.start_time, constraint.end_time):
                raise TemporalViolation(
                    "Role cannot be activated at this time of day",
                    constraint_id=constraint.id,
                    constraint_name=constraint.name,
                    role_id=candidate_role.id,
                    details={
                        "start_time": constraint.start_time.isoformat(timespec="minutes"),
                        "end_time": constraint.end_time.isoformat(timespec="minutes"),
                    },
                )


def _check_exclusive(
    constraint: MutualExclusionConstraint | SeparationOfDutyConstraint,
    candidate_role: Role,
    held: set[str],
    error: type[MutualExclusionViolation] | type[SeparationViolation],
) -> None:
    conflicting = (constraint.constrained_roles - {candidate_role.id}) & held
    if conflicting:
        raise error(
            f"Role '{candidate_role.id}' conflicts with "
            f"{', '.join(sorted(conflicting))}",
            constraint_id=constraint.id,
            constraint_name=constraint.name,
            role_id=candidate_role.id,
            details={"conflicting_roles": sorted(conflicting)},
        )


def _check_assignment_cardinality(
    constraint: CardinalityConstraint,
    candidate_role: Role,
    assigned: set[str],
    role_holder_count: int,
) -> None:
    if constraint.max_roles is not None and len(assigned) >= constraint.max_roles:
        raise CardinalityViolation(
            f"A user may hold at most {constraint.max_roles} role(s)",
            constraint_id=constraint.id,
            constraint_name=constraint.name,
            role_id=candidate_role.id,
            details={"max_roles": constraint.max_roles},
        )
    if constraint.max_users is not None and role_holder_count >= constraint.max_users:
        raise CardinalityViolation(
            f"Role '{candidate_role.id}' may be held by at most "
            f"{constraint.max_users} user(s)",
            constraint_id=constraint.id,
            constraint_name=constraint.name,
            role_id=candidate_role.id,
            details={"max_users": constraint.max_users},
        )
