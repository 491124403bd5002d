"""Background job task implementations."""

from rolegate.core.jobs.tasks.sweep import sweep_expired_sessions


__all__ = [
    "sweep_expired_sessions",
]
