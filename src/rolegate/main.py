"""Authorization core factory.

Wires the role graph, permission catalog, constraint registry, constraint
engine, session manager and permission checker into one object that a
host application keeps for the lifetime of its process.
"""

import threading
from dataclasses import dataclass
from zoneinfo import ZoneInfo

import structlog

from rolegate.config import Settings, get_settings
from rolegate.modules.constraints.engine import Clock, ConstraintEngine, utc_now
from rolegate.modules.constraints.registry import ConstraintRegistry
from rolegate.modules.permissions.catalog import PermissionCatalog
from rolegate.modules.permissions.checker import PermissionChecker
from rolegate.modules.permissions.tree import PermissionTreeBuilder
from rolegate.modules.roles.graph import RoleGraph
from rolegate.modules.roles.models import Role
from rolegate.modules.sessions.manager import SessionManager
from rolegate.policy.defaults import default_policy
from rolegate.policy.loader import load_policy
from rolegate.policy.schemas import PolicyDocument


logger = structlog.get_logger()


@dataclass
class AuthorizationCore:
    """Every component of a running authorization core."""

    role_graph: RoleGraph
    catalog: PermissionCatalog
    constraints: ConstraintRegistry
    engine: ConstraintEngine
    sessions: SessionManager
    checker: PermissionChecker
    tree_builder: PermissionTreeBuilder
    settings: Settings

    def reload(self, policy: PolicyDocument) -> None:
        """Swap in a new policy.

        The role graph, catalog and constraints are published together
        under the shared policy lock. Roles the new policy no longer
        declares are then dropped from open sessions.

        Raises:
            ConflictError, NotFoundError, CycleError, ValidationError:
                If the policy is inconsistent; nothing is replaced then
        """
        roles = policy.to_roles()
        permissions = policy.flat_permissions()
        grants = policy.grant_ids()

        # Validate everything before publishing anything.
        RoleGraph(roles)
        PermissionCatalog(permissions, grants)
        ConstraintRegistry(policy.constraints)

        with self.role_graph.lock:
            removed = {role.id for role in self.role_graph.roles()} - {
                role.id for role in roles
            }
            self.role_graph.load(roles)
            self.catalog.refresh(permissions, grants)
            self.constraints.load(policy.constraints)

        # Session locks are taken outside the policy lock; activation takes
        # them in the opposite order.
        if removed:
            self.sessions.drop_roles(*removed)
        logger.info(
            "policy_reloaded", role_count=len(roles), removed_roles=sorted(removed)
        )

    def remove_role(self, role_id: str) -> Role:
        """Remove a role from the graph and from every open session.

        Raises:
            NotFoundError: If the role does not exist
        """
        removed = self.role_graph.remove_role(role_id)
        self.sessions.drop_roles(role_id)
        return removed


def resolve_policy(settings: Settings) -> PolicyDocument:
    """The configured policy file, or the built-in default policy."""
    if settings.policy_path is not None:
        return load_policy(settings.policy_path)
    return default_policy()


def create_core(
    policy: PolicyDocument | None = None,
    settings: Settings | None = None,
    clock: Clock | None = None,
) -> AuthorizationCore:
    """Build a fully wired authorization core.

    Args:
        policy: Policy to load (defaults to ``settings.policy_path`` or the
            built-in policy)
        settings: Settings (defaults to the cached environment settings)
        clock: Time source shared by the engine and the session manager

    Returns:
        The wired core

    Raises:
        NotFoundError: If the configured policy file does not exist
        ValidationError: If the policy is invalid
        ConflictError: If the policy declares duplicate roles or permissions
        CycleError: If the policy's role parents form a cycle
    """
    settings = settings or get_settings()
    policy = policy or resolve_policy(settings)
    clock = clock or utc_now

    # One lock guards the graph, catalog and constraints as a single policy.
    policy_lock = threading.RLock()
    role_graph = RoleGraph(policy.to_roles(), lock=policy_lock)
    catalog = PermissionCatalog(
        policy.flat_permissions(), policy.grant_ids(), lock=policy_lock
    )
    constraints = ConstraintRegistry(policy.constraints, lock=policy_lock)
    engine = ConstraintEngine(clock=clock, timezone=ZoneInfo(settings.constraint_timezone))
    sessions = SessionManager(
        role_graph,
        constraints,
        engine=engine,
        inactivity_timeout=settings.inactivity_timeout,
        clock=clock,
    )
    checker = PermissionChecker(role_graph, catalog, sessions)

    logger.info(
        "authorization_core_created",
        app_name=settings.app_name,
        environment=settings.environment,
        role_count=len(role_graph),
        permission_count=len(catalog.all()),
        constraint_count=len(constraints.all()),
    )

    return AuthorizationCore(
        role_graph=role_graph,
        catalog=catalog,
        constraints=constraints,
        engine=engine,
        sessions=sessions,
        checker=checker,
        tree_builder=PermissionTreeBuilder(),
        settings=settings,
    )
