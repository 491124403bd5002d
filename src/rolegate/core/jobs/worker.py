"""ARQ worker configuration for the session sweep.

Sessions live in the host process's memory, so the sweep worker runs
inside that process and is handed the session manager through the
worker context.
"""

from typing import Any

import structlog
from arq import cron
from arq.connections import RedisSettings
from arq.cron import CronJob
from arq.worker import Worker

from rolegate.config import Settings, get_settings
from rolegate.core.jobs.tasks.sweep import sweep_expired_sessions
from rolegate.modules.sessions.manager import SessionManager


def get_redis_settings(settings: Settings | None = None) -> RedisSettings:
    """Get Redis settings for ARQ from the configured ``redis_url``."""
    settings = settings or get_settings()
    return RedisSettings.from_dsn(str(settings.redis_url))


def build_cron_jobs(settings: Settings | None = None) -> list[CronJob]:
    """Cron schedule running the sweep every configured interval.

    Returns:
        A single cron job firing on every multiple of the interval
    """
    settings = settings or get_settings()
    interval = settings.session_sweep_interval_minutes
    return [
        cron(
            sweep_expired_sessions,
            minute=set(range(0, 60, interval)),
            unique=True,
        ),
    ]


async def startup(ctx: dict[str, Any]) -> None:
    """Log worker startup.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    log = structlog.get_logger()
    settings = ctx.get("settings") or get_settings()
    log.info(
        "worker_startup",
        environment=settings.environment,
        sweep_interval_minutes=settings.session_sweep_interval_minutes,
    )


async def shutdown(ctx: dict[str, Any]) -> None:
    """Log worker shutdown.

    Args:
        ctx: Worker context dict
    """
    log = structlog.get_logger()
    log.info("worker_shutdown")


def create_sweep_worker(
    manager: SessionManager,
    settings: Settings | None = None,
) -> Worker:
    """Build an in-process worker that sweeps ``manager``.

    Run it alongside the host with ``await worker.async_run()``.

    Args:
        manager: Session manager to sweep
        settings: Settings (defaults to the cached environment settings)

    Returns:
        ARQ worker with the sweep scheduled and the manager in its context
    """
    settings = settings or get_settings()
    return Worker(
        functions=[sweep_expired_sessions],
        cron_jobs=build_cron_jobs(settings),
        redis_settings=get_redis_settings(settings),
        on_startup=startup,
        on_shutdown=shutdown,
        ctx={"session_manager": manager, "settings": settings},
        max_jobs=1,
        job_timeout=60,
        keep_result=0,
        handle_signals=False,
    )
