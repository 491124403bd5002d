"""Session sweep task.

Ends sessions that went idle past the inactivity timeout and forgets
sessions that ended longer ago than the retention period.
"""

from typing import Any

import structlog

from rolegate.config import get_settings


log = structlog.get_logger()


async def sweep_expired_sessions(ctx: dict[str, Any]) -> dict[str, int]:
    """Sweep expired and stale ended sessions.

    Scheduled every ``session_sweep_interval_minutes``.

    Args:
        ctx: Worker context containing the session manager

    Returns:
        Dict with count of sessions ended and purged
    """
    manager = ctx["session_manager"]
    settings = ctx.get("settings") or get_settings()

    ended = manager.sweep_expired()
    purged = manager.purge_ended(settings.session_retention)

    log.info(
        "sweep_expired_sessions_complete",
        sessions_ended=ended,
        sessions_purged=purged,
    )

    return {
        "sessions_ended": ended,
        "sessions_purged": purged,
    }
