"""Constraint registry.

Holds the constraints known to the process and applies administrative
create / update / deactivate changes. Like the role graph, each change
publishes a new immutable snapshot.
"""

import threading
from collections.abc import Iterable, Mapping
from contextlib import AbstractContextManager

import structlog

from rolegate.core.errors import ConflictError, NotFoundError
from rolegate.modules.constraints.models import Constraint


logger = structlog.get_logger()


class ConstraintRegistry:
    """Read-mostly store of constraints keyed by id."""

    def __init__(
        self,
        constraints: Iterable[Constraint] = (),
        lock: AbstractContextManager[bool] | None = None,
    ) -> None:
        self._write_lock = lock or threading.RLock()
        self._constraints: Mapping[str, Constraint] = {}
        self.load(constraints)

    def load(self, constraints: Iterable[Constraint]) -> None:
        """Replace every constraint.

        Raises:
            ConflictError: If two constraints share an id
        """
        by_id: dict[str, Constraint] = {}
        for constraint in constraints:
            if constraint.id in by_id:
                raise ConflictError(
                    f"Duplicate constraint id '{constraint.id}'",
                    details={"constraint_id": constraint.id},
                )
            by_id[constraint.id] = constraint

        with self._write_lock:
            self._constraints = by_id

        logger.info("constraints_loaded", constraint_count=len(by_id))

    def create(self, constraint: Constraint) -> Constraint:
        """Register a new constraint.

        Raises:
            ConflictError: If the id is already taken
        """
        with self._write_lock:
            if constraint.id in self._constraints:
                raise ConflictError(
                    f"Constraint '{constraint.id}' already exists",
                    details={"constraint_id": constraint.id},
                )
            self._constraints = {**self._constraints, constraint.id: constraint}

        logger.info(
            "constraint_created", constraint_id=constraint.id, kind=constraint.kind
        )
        return constraint

    def update(self, constraint: Constraint) -> Constraint:
        """Replace an existing constraint (its kind may change).

        Raises:
            NotFoundError: If no constraint has this id
        """
        with self._write_lock:
            self._require(constraint.id)
            self._constraints = {**self._constraints, constraint.id: constraint}

        logger.info(
            "constraint_updated", constraint_id=constraint.id, kind=constraint.kind
        )
        return constraint

    def deactivate(self, constraint_id: str) -> Constraint:
        """Stop evaluating a constraint without deleting it."""
        return self._set_active(constraint_id, False)

    def activate(self, constraint_id: str) -> Constraint:
        """Resume evaluating a deactivated constraint."""
        return self._set_active(constraint_id, True)

    def remove(self, constraint_id: str) -> Constraint:
        """Delete a constraint.

        Raises:
            NotFoundError: If no constraint has this id
        """
        with self._write_lock:
            removed = self._require(constraint_id)
            self._constraints = {
                key: value
                for key, value in self._constraints.items()
                if key != constraint_id
            }

        logger.info("constraint_removed", constraint_id=constraint_id)
        return removed

    def get(self, constraint_id: str) -> Constraint:
        """Get a constraint by id.

        Raises:
            NotFoundError: If no constraint has this id
        """
        return self._require(constraint_id)

    def all(self) -> list[Constraint]:
        """Every registered constraint, active or not."""
        return list(self._constraints.values())

    def for_role(self, role_id: str) -> list[Constraint]:
        """Active constraints that cover ``role_id``."""
        return [c for c in self._constraints.values() if c.applies_to(role_id)]

    def _set_active(self, constraint_id: str, is_active: bool) -> Constraint:
        with self._write_lock:
            current = self._require(constraint_id)
            updated = current.model_copy(update={"is_active": is_active})
            self._constraints = {**self._constraints, constraint_id: updated}

        logger.info(
            "constraint_activated" if is_active else "constraint_deactivated",
            constraint_id=constraint_id,
        )
        return updated

    def _require(self, constraint_id: str) -> Constraint:
        constraint = self._constraints.get(constraint_id)
        if constraint is None:
            raise NotFoundError(
                f"Constraint '{constraint_id}' not found",
                resource="constraint",
                resource_id=constraint_id,
            )
        return constraint
