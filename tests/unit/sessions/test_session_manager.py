"""Unit tests for session management.

These tests verify the SessionManager logic including:
- Role activation under constraints
- Inactivity expiry and sweeping
- Per-user session queries
"""

import threading
from datetime import timedelta

import pytest

from rolegate.core.errors import (
    CardinalityViolation,
    MutualExclusionViolation,
    NotAuthorizedError,
    NotFoundError,
    SessionExpiredError,
)
from rolegate.modules.constraints.models import (
    CardinalityConstraint,
    MutualExclusionConstraint,
)
from rolegate.modules.constraints.registry import ConstraintRegistry
from rolegate.modules.sessions.manager import SessionManager
from rolegate.modules.sessions.models import ClientInfo, SessionState


pytestmark = pytest.mark.unit


class TestCreateSession:
    """Tests for session creation."""

    def test_all_static_roles_active(self, session_manager: SessionManager) -> None:
        session = session_manager.create_session(
            "u1", ["visitor", "auditor", "visitor"], ClientInfo(ip_address="10.0.0.1")
        )

        assert session.active_roles == ("visitor", "auditor")
        assert session.static_roles == frozenset({"visitor", "auditor"})
        assert session.client_info.ip_address == "10.0.0.1"
        assert session_manager.state(session.id) == SessionState.ACTIVE

    def test_session_ids_are_unique(self, session_manager: SessionManager) -> None:
        first = session_manager.create_session("u1", [])
        second = session_manager.create_session("u1", [])

        assert first.id != second.id
        assert len(session_manager) == 2


class TestActivateRole:
    """Tests for activating and deactivating roles."""

    def test_cardinality_violation(
        self, session_manager: SessionManager, constraints: ConstraintRegistry
    ) -> None:
        """Verify a second role is refused under a one-role limit."""
        constraints.create(
            CardinalityConstraint(
                id="c1", name="One role", max_roles=1, constrained_roles={"a", "b"}
            )
        )
        session = session_manager.create_session("u1", ["a", "b"])
        session_manager.deactivate_role(session.id, "b")

        with pytest.raises(CardinalityViolation):
            session_manager.activate_role(session.id, "b")

        assert session_manager.active_roles(session.id) == ("a",)

    def test_mutual_exclusion_cleared_by_deactivation(
        self, session_manager: SessionManager, constraints: ConstraintRegistry
    ) -> None:
        """Verify an exclusive role can be activated once the other is off."""
        constraints.create(
            MutualExclusionConstraint(
                id="m1", name="Audit split", constrained_roles={"auditor", "accountant"}
            )
        )
        session = session_manager.create_session("u1", ["auditor", "accountant"])
        session_manager.deactivate_role(session.id, "auditor")
        session_manager.deactivate_role(session.id, "accountant")

        session_manager.activate_role(session.id, "auditor")
        with pytest.raises(MutualExclusionViolation):
            session_manager.activate_role(session.id, "accountant")

        session_manager.deactivate_role(session.id, "auditor")
        updated = session_manager.activate_role(session.id, "accountant")

        assert updated.active_roles == ("accountant",)

    def test_activation_is_idempotent(self, session_manager: SessionManager) -> None:
        session = session_manager.create_session("u1", ["visitor", "auditor"])

        once = session_manager.activate_role(session.id, "visitor")
        twice = session_manager.activate_role(session.id, "visitor")

        assert set(once.active_roles) == set(twice.active_roles)
        assert twice.active_roles.count("visitor") == 1

    def test_unassigned_role(self, session_manager: SessionManager) -> None:
        """Verify only statically assigned roles can be switched on."""
        session = session_manager.create_session("u1", ["visitor"])

        with pytest.raises(NotAuthorizedError):
            session_manager.activate_role(session.id, "admin")

        assert set(session_manager.active_roles(session.id)) <= session.static_roles

    def test_deactivate_inactive_role_is_noop(
        self, session_manager: SessionManager
    ) -> None:
        session = session_manager.create_session("u1", ["visitor"])

        updated = session_manager.deactivate_role(session.id, "auditor")

        assert updated.active_roles == ("visitor",)

    def test_activate_on_expired_session(
        self, session_manager: SessionManager, clock
    ) -> None:
        session = session_manager.create_session("u1", ["visitor"])
        session_manager.deactivate_role(session.id, "visitor")
        clock.advance(minutes=31)

        with pytest.raises(SessionExpiredError):
            session_manager.activate_role(session.id, "visitor")

    def test_unknown_session(self, session_manager: SessionManager) -> None:
        with pytest.raises(NotFoundError):
            session_manager.activate_role("missing", "visitor")

    def test_concurrent_activations_respect_cardinality(
        self, session_manager: SessionManager, constraints: ConstraintRegistry
    ) -> None:
        """Verify racing activations cannot both pass a one-role limit."""
        constraints.create(
            CardinalityConstraint(
                id="c1",
                name="One role",
                max_roles=1,
                constrained_roles={"a", "b", "visitor", "auditor"},
            )
        )
        session = session_manager.create_session("u1", ["a", "b", "visitor", "auditor"])
        for role_id in ("a", "b", "visitor", "auditor"):
            session_manager.deactivate_role(session.id, role_id)

        barrier = threading.Barrier(4)

        def activate(role_id: str) -> None:
            barrier.wait()
            try:
                session_manager.activate_role(session.id, role_id)
            except CardinalityViolation:
                pass

        threads = [
            threading.Thread(target=activate, args=(role_id,))
            for role_id in ("a", "b", "visitor", "auditor")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(session_manager.active_roles(session.id)) == 1


class TestExpiry:
    """Tests for inactivity expiry and the sweep."""

    def test_idle_session_expires_and_is_swept(
        self, session_manager: SessionManager, clock
    ) -> None:
        """Verify a session idle for 31 minutes is expired and swept once."""
        session = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=31)

        assert session_manager.is_expired(session.id)
        assert session_manager.sweep_expired() == 1
        assert session_manager.state(session.id) == SessionState.ENDED
        assert session_manager.sweep_expired() == 0

    def test_touch_keeps_session_alive(
        self, session_manager: SessionManager, clock
    ) -> None:
        session = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=20)
        session_manager.touch(session.id)
        clock.advance(minutes=20)

        assert not session_manager.is_expired(session.id)
        assert session_manager.sweep_expired() == 0

    def test_exactly_at_timeout_is_still_active(
        self, session_manager: SessionManager, clock
    ) -> None:
        session = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=30)

        assert not session_manager.is_expired(session.id)

    def test_touch_expired_session(self, session_manager: SessionManager, clock) -> None:
        session = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=31)

        with pytest.raises(SessionExpiredError):
            session_manager.touch(session.id)

    def test_end_session(self, session_manager: SessionManager, clock) -> None:
        session = session_manager.create_session("u1", ["visitor"])

        ended = session_manager.end_session(session.id)
        again = session_manager.end_session(session.id)

        assert not ended.is_active
        assert ended.end_time == clock.now
        assert again.end_time == ended.end_time
        assert session_manager.is_expired(session.id)

    def test_purge_ended(self, session_manager: SessionManager, clock) -> None:
        """Verify only sessions ended longer ago than the retention are forgotten."""
        old = session_manager.create_session("u1", ["visitor"])
        session_manager.end_session(old.id)
        clock.advance(hours=2)
        recent = session_manager.create_session("u1", ["visitor"])
        session_manager.end_session(recent.id)
        live = session_manager.create_session("u1", ["visitor"])

        assert session_manager.purge_ended(timedelta(hours=1)) == 1

        with pytest.raises(NotFoundError):
            session_manager.get_session(old.id)
        assert session_manager.get_session(recent.id).end_time == clock.now
        assert session_manager.get_session(live.id).is_active


class TestUserSessions:
    """Tests for per-user queries."""

    def test_end_all_sessions_for_user(self, session_manager: SessionManager) -> None:
        session_manager.create_session("u1", ["visitor"])
        session_manager.create_session("u1", ["visitor"])
        other = session_manager.create_session("u2", ["visitor"])

        assert session_manager.end_all_sessions_for_user("u1") == 2
        assert session_manager.list_user_sessions("u1") == []
        assert session_manager.get_session(other.id).is_active

    def test_list_user_sessions_most_recent_first(
        self, session_manager: SessionManager, clock
    ) -> None:
        first = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=1)
        second = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=1)
        session_manager.touch(first.id)

        listed = [s.id for s in session_manager.list_user_sessions("u1")]

        assert listed == [first.id, second.id]

    def test_session_stats(self, session_manager: SessionManager, clock) -> None:
        first = session_manager.create_session("u1", ["visitor"])
        clock.advance(minutes=5)
        second = session_manager.create_session("u1", ["visitor"])
        session_manager.end_session(first.id)

        stats = session_manager.session_stats("u1")

        assert stats.total_sessions == 2
        assert stats.active_sessions == 1
        assert stats.last_login_time == second.start_time

    def test_has_active_role(self, session_manager: SessionManager) -> None:
        session = session_manager.create_session("u1", ["visitor"])

        assert session_manager.has_active_role(session.id, "visitor")
        assert not session_manager.has_active_role(session.id, "admin")


class TestDropRoles:
    """Tests for withdrawing roles that left the graph."""

    def test_drops_static_and_active_roles(
        self, session_manager: SessionManager
    ) -> None:
        holder = session_manager.create_session("u1", ["visitor", "auditor"])
        session_manager.deactivate_role(holder.id, "visitor")
        other = session_manager.create_session("u2", ["visitor"])

        changed = session_manager.drop_roles("auditor", "ghost")

        session = session_manager.get_session(holder.id)
        assert changed == 1
        assert session.static_roles == frozenset({"visitor"})
        assert session.active_roles == ()
        assert session_manager.get_session(other.id) == other

    def test_dropped_role_cannot_be_reactivated(
        self, session_manager: SessionManager
    ) -> None:
        session = session_manager.create_session("u1", ["visitor", "auditor"])
        session_manager.drop_roles("auditor")

        with pytest.raises(NotAuthorizedError):
            session_manager.activate_role(session.id, "auditor")
