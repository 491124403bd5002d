"""Background session sweeping with ARQ.

Provides a Redis-backed cron job that ends idle sessions and purges
ended ones past their retention period.
"""

from rolegate.core.jobs.tasks import sweep_expired_sessions
from rolegate.core.jobs.worker import build_cron_jobs, create_sweep_worker, get_redis_settings


__all__ = [
    "build_cron_jobs",
    "create_sweep_worker",
    "get_redis_settings",
    "sweep_expired_sessions",
]
