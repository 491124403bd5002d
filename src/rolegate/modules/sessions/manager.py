"""Session lifecycle management.

Sessions move ``active -> expired -> ended`` (or straight to ``ended`` on
an explicit end). Every mutation of a session happens under that
session's own lock: validation and the resulting change are applied
atomically, so two concurrent activations cannot both pass a cardinality
or exclusion check against the same stale role set. Different sessions
never contend with each other.

Callers only ever receive frozen ``Session`` snapshots.
"""

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import uuid4

import structlog

from rolegate.core.constants import DEFAULT_INACTIVITY_TIMEOUT_MINUTES
from rolegate.core.errors import (
    ConstraintViolation,
    NotAuthorizedError,
    NotFoundError,
    SessionExpiredError,
)
from rolegate.modules.constraints.engine import Clock, ConstraintEngine, utc_now
from rolegate.modules.constraints.registry import ConstraintRegistry
from rolegate.modules.roles.graph import RoleGraph
from rolegate.modules.sessions.models import (
    ClientInfo,
    Session,
    SessionState,
    SessionStats,
)


logger = structlog.get_logger()


@dataclass
class _SessionEntry:
    session: Session
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionManager:
    """Owns every session and the roles active in it.

    Args:
        role_graph: Source of roles handed to the constraint engine
        constraints: Constraints evaluated on activation
        engine: Constraint engine (defaults to one sharing ``clock``)
        inactivity_timeout: Idle time after which a session expires
        clock: Returns the current time
    """

    def __init__(
        self,
        role_graph: RoleGraph,
        constraints: ConstraintRegistry,
        engine: ConstraintEngine | None = None,
        inactivity_timeout: timedelta = timedelta(
            minutes=DEFAULT_INACTIVITY_TIMEOUT_MINUTES
        ),
        clock: Clock | None = None,
    ) -> None:
        self._roles = role_graph
        self._constraints = constraints
        self._clock = clock or utc_now
        self._engine = engine or ConstraintEngine(clock=self._clock)
        self._inactivity_timeout = inactivity_timeout
        self._entries: dict[str, _SessionEntry] = {}
        self._entries_lock = threading.Lock()

    @property
    def inactivity_timeout(self) -> timedelta:
        return self._inactivity_timeout

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(
        self,
        user_id: str,
        static_roles: Iterable[str],
        client_info: ClientInfo | None = None,
    ) -> Session:
        """Open a session with every statically assigned role active.

        Args:
            user_id: Durable id handed over by the identity subsystem
            static_roles: Roles assigned to the user
            client_info: Optional client details

        Returns:
            The new session
        """
        now = self._clock()
        roles = tuple(dict.fromkeys(static_roles))
        session = Session(
            id=str(uuid4()),
            user_id=user_id,
            static_roles=frozenset(roles),
            active_roles=roles,
            start_time=now,
            last_activity_time=now,
            client_info=client_info or ClientInfo(),
        )

        with self._entries_lock:
            self._entries[session.id] = _SessionEntry(session)

        logger.info(
            "session_created",
            session_id=session.id,
            user_id=session.user_id,
            active_roles=list(roles),
        )
        return session

    def touch(self, session_id: str) -> Session:
        """Record activity on a session.

        Hosts call this on every authorized request; a session that is not
        touched within the inactivity timeout expires.

        Raises:
            NotFoundError: If the session does not exist
            SessionExpiredError: If the session already expired or ended
        """
        entry = self._entry(session_id)
        with entry.lock:
            now = self._clock()
            self._ensure_live(entry.session, now)
            entry.session = entry.session.model_copy(update={"last_activity_time": now})
            return entry.session

    def end_session(self, session_id: str) -> Session:
        """End a session; ending an ended session changes nothing.

        Raises:
            NotFoundError: If the session does not exist
        """
        entry = self._entry(session_id)
        with entry.lock:
            self._end(entry, self._clock(), reason="ended")
            return entry.session

    def end_all_sessions_for_user(self, user_id: str) -> int:
        """End every open session of a user.

        Returns:
            Number of sessions ended by this call
        """
        ended = 0
        for entry in self._snapshot_entries():
            if entry.session.user_id != user_id:
                continue
            with entry.lock:
                if self._end(entry, self._clock(), reason="ended"):
                    ended += 1

        logger.info("user_sessions_ended", user_id=user_id, count=ended)
        return ended

    def sweep_expired(self) -> int:
        """End every open session that is past its inactivity window.

        Returns:
            Number of sessions ended
        """
        ended = 0
        for entry in self._snapshot_entries():
            with entry.lock:
                now = self._clock()
                if entry.session.state_at(now, self._inactivity_timeout) == (
                    SessionState.EXPIRED
                ) and self._end(entry, now, reason="expired"):
                    ended += 1

        logger.info("sessions_swept", ended=ended)
        return ended

    def purge_ended(self, retention: timedelta) -> int:
        """Forget sessions that ended more than ``retention`` ago.

        Returns:
            Number of sessions removed
        """
        now = self._clock()
        purgeable: list[str] = []
        for entry in self._snapshot_entries():
            with entry.lock:
                session = entry.session
                if (
                    not session.is_active
                    and session.end_time is not None
                    and now - session.end_time > retention
                ):
                    purgeable.append(session.id)

        with self._entries_lock:
            for session_id in purgeable:
                self._entries.pop(session_id, None)

        if purgeable:
            logger.info("sessions_purged", count=len(purgeable))
        return len(purgeable)

    # ------------------------------------------------------------------
    # Role activation
    # ------------------------------------------------------------------

    def activate_role(self, session_id: str, role_id: str) -> Session:
        """Switch a statically assigned role on.

        Activating a role that is already active is a no-op.

        Raises:
            NotFoundError: If the session or role does not exist
            SessionExpiredError: If the session expired or ended
            NotAuthorizedError: If the user was never assigned the role
            ConstraintViolation: If a constraint rejects the activation
        """
        entry = self._entry(session_id)
        with entry.lock:
            session = entry.session
            self._ensure_live(session, self._clock())

            if role_id not in session.static_roles:
                raise NotAuthorizedError(
                    f"Role '{role_id}' is not assigned to user '{session.user_id}'",
                    details={"session_id": session_id, "role_id": role_id},
                )

            if role_id in session.active_roles:
                return session

            with self._roles.lock:
                role = self._roles.get(role_id)
                constraints = self._constraints.all()
            try:
                self._engine.validate_activation(session, role, constraints)
            except ConstraintViolation as exc:
                logger.warning(
                    "session_activation_rejected",
                    session_id=session_id,
                    role_id=role_id,
                    error_code=exc.error_code,
                    details=exc.details,
                )
                raise

            updated = session.model_copy(
                update={"active_roles": (*session.active_roles, role_id)}
            )
            entry.session = updated

        logger.info("session_role_activated", session_id=session_id, role_id=role_id)
        return updated

    def deactivate_role(self, session_id: str, role_id: str) -> Session:
        """Switch a role off. Never constrained; inactive roles are ignored.

        Raises:
            NotFoundError: If the session does not exist
            SessionExpiredError: If the session expired or ended
        """
        entry = self._entry(session_id)
        with entry.lock:
            session = entry.session
            self._ensure_live(session, self._clock())

            if role_id not in session.active_roles:
                return session

            updated = session.model_copy(
                update={
                    "active_roles": tuple(r for r in session.active_roles if r != role_id)
                }
            )
            entry.session = updated

        logger.info("session_role_deactivated", session_id=session_id, role_id=role_id)
        return updated

    def drop_roles(self, *role_ids: str) -> int:
        """Withdraw roles that no longer exist from every session.

        Each role is removed from the static and the active roles of any
        session holding it, under that session's lock.

        Returns:
            Number of sessions changed
        """
        dropped = set(role_ids)
        changed = 0
        for entry in self._snapshot_entries():
            with entry.lock:
                session = entry.session
                if dropped.isdisjoint(session.static_roles):
                    continue
                entry.session = session.model_copy(
                    update={
                        "static_roles": session.static_roles - dropped,
                        "active_roles": tuple(
                            r for r in session.active_roles if r not in dropped
                        ),
                    }
                )
                changed += 1

        if changed:
            logger.info(
                "session_roles_dropped", role_ids=sorted(dropped), sessions=changed
            )
        return changed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Session:
        """Current snapshot of a session.

        Raises:
            NotFoundError: If the session does not exist
        """
        return self._entry(session_id).session

    def is_expired(self, session: Session | str) -> bool:
        """Whether a session is ended or idle past the inactivity timeout."""
        if isinstance(session, str):
            session = self.get_session(session)
        return session.is_expired_at(self._clock(), self._inactivity_timeout)

    def state(self, session_id: str) -> SessionState:
        """Lifecycle state of a session right now."""
        return self.get_session(session_id).state_at(
            self._clock(), self._inactivity_timeout
        )

    def active_roles(self, session_id: str) -> tuple[str, ...]:
        """Roles currently switched on in a session."""
        return self.get_session(session_id).active_roles

    def has_active_role(self, session_id: str, role_id: str) -> bool:
        return role_id in self.get_session(session_id).active_roles

    def list_user_sessions(self, user_id: str, active_only: bool = True) -> list[Session]:
        """Sessions of one user, most recently active first."""
        now = self._clock()
        sessions = [
            entry.session
            for entry in self._snapshot_entries()
            if entry.session.user_id == user_id
            and (
                not active_only
                or entry.session.state_at(now, self._inactivity_timeout)
                == SessionState.ACTIVE
            )
        ]
        return sorted(sessions, key=lambda s: s.last_activity_time, reverse=True)

    def session_stats(self, user_id: str) -> SessionStats:
        """Total and active session counts plus the latest login of a user."""
        sessions = self.list_user_sessions(user_id, active_only=False)
        now = self._clock()
        return SessionStats(
            total_sessions=len(sessions),
            active_sessions=sum(
                1
                for s in sessions
                if s.state_at(now, self._inactivity_timeout) == SessionState.ACTIVE
            ),
            last_login_time=max((s.start_time for s in sessions), default=None),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entry(self, session_id: str) -> _SessionEntry:
        with self._entries_lock:
            entry = self._entries.get(session_id)
        if entry is None:
            raise NotFoundError(
                f"Session '{session_id}' not found",
                resource="session",
                resource_id=session_id,
            )
        return entry

    def _snapshot_entries(self) -> list[_SessionEntry]:
        with self._entries_lock:
            return list(self._entries.values())

    def _ensure_live(self, session: Session, now: datetime) -> None:
        if session.is_expired_at(now, self._inactivity_timeout):
            raise SessionExpiredError(session.id)

    def _end(self, entry: _SessionEntry, now: datetime, reason: str) -> bool:
        # Caller holds entry.lock.
        session = entry.session
        if not session.is_active:
            return False
        entry.session = session.model_copy(update={"is_active": False, "end_time": now})
        logger.info(
            "session_ended",
            session_id=session.id,
            user_id=session.user_id,
            reason=reason,
        )
        return True
