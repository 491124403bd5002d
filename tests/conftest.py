"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from rolegate.modules.constraints.engine import ConstraintEngine
from rolegate.modules.constraints.registry import ConstraintRegistry
from rolegate.modules.roles.graph import RoleGraph
from rolegate.modules.roles.models import Role
from rolegate.modules.sessions.manager import SessionManager


class FakeClock:
    """Controllable time source.

    Starts on Wednesday 2024-01-03 at 10:00 UTC.
    """

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 1, 3, 10, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


def _roles(*specs: tuple[str, str | None]) -> list[Role]:
    """Build roles from ``(id, parent_id)`` pairs; names equal ids."""
    return [Role(id=role_id, name=role_id, parent_id=parent) for role_id, parent in specs]


@pytest.fixture
def clock() -> FakeClock:
    """A clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def role_graph() -> RoleGraph:
    """visitor <- developer <- admin, plus unrelated flat roles."""
    return RoleGraph(
        _roles(
            ("visitor", None),
            ("developer", "visitor"),
            ("admin", "developer"),
            ("auditor", None),
            ("accountant", None),
            ("a", None),
            ("b", None),
        )
    )


@pytest.fixture
def constraints() -> ConstraintRegistry:
    """An empty constraint registry."""
    return ConstraintRegistry()


@pytest.fixture
def session_manager(
    role_graph: RoleGraph, constraints: ConstraintRegistry, clock: FakeClock
) -> SessionManager:
    """Session manager with a 30-minute timeout driven by ``clock``."""
    return SessionManager(
        role_graph,
        constraints,
        engine=ConstraintEngine(clock=clock),
        inactivity_timeout=timedelta(minutes=30),
        clock=clock,
    )

