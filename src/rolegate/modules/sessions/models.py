"""Session models.

A session is a user's login with the subset of their statically assigned
roles that are switched on. Sessions are immutable snapshots: the
``SessionManager`` replaces them wholesale on every change.
"""

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SessionState(StrEnum):
    """Lifecycle state of a session."""

    ACTIVE = "active"
    EXPIRED = "expired"
    ENDED = "ended"


class ClientInfo(BaseModel):
    """Client details captured at login."""

    model_config = ConfigDict(frozen=True)

    ip_address: str | None = None
    user_agent: str | None = None
    device_info: str | None = None


class Session(BaseModel):
    """Snapshot of a login session.

    Attributes:
        id: Session identifier
        user_id: Durable id of the authenticated principal
        static_roles: Roles statically assigned to the user at login
        active_roles: Roles switched on in this session, in activation order
        start_time: When the session was created
        last_activity_time: Last authorized request
        end_time: When the session was ended, if it was
        is_active: False once the session has been ended
        client_info: Client details from the identity subsystem
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    user_id: str
    static_roles: frozenset[str]
    active_roles: tuple[str, ...] = ()
    start_time: datetime
    last_activity_time: datetime
    end_time: datetime | None = None
    is_active: bool = True
    client_info: ClientInfo = Field(default_factory=ClientInfo)

    @model_validator(mode="after")
    def validate_active_roles(self) -> "Session":
        if len(set(self.active_roles)) != len(self.active_roles):
            raise ValueError("active_roles must not contain duplicates")
        if not set(self.active_roles) <= self.static_roles:
            raise ValueError("active_roles must be a subset of static_roles")
        return self

    def state_at(self, now: datetime, inactivity_timeout: timedelta) -> SessionState:
        """Lifecycle state as of ``now``."""
        if not self.is_active or self.end_time is not None:
            return SessionState.ENDED
        if now - self.last_activity_time > inactivity_timeout:
            return SessionState.EXPIRED
        return SessionState.ACTIVE

    def is_expired_at(self, now: datetime, inactivity_timeout: timedelta) -> bool:
        """True once the session is ended or idle past the timeout."""
        return self.state_at(now, inactivity_timeout) != SessionState.ACTIVE


class SessionStats(BaseModel):
    """Session counts for one user."""

    total_sessions: int
    active_sessions: int
    last_login_time: datetime | None = None
