"""
ARQ background task: redeliver reply notifications that failed inline.

Enqueued by ``NotificationDispatcher.dispatch``. Delivery is idempotent, so a
retry after a partial failure never duplicates notifications.

Run with: ``arq forum.tasks.notifications.WorkerSettings``
"""

from __future__ import annotations

import structlog
from arq import Retry
from arq.connections import RedisSettings

from forum.core.config import get_settings
from forum.core.logging import configure_logging
from forum.services.notifications import NotificationDispatcher

log = structlog.get_logger()
settings = get_settings()


async def deliver_reply_notifications(ctx: dict, reply_id: int) -> int:
    """Record notifications for a reply. Returns the number of new rows."""
    try:
        created = await NotificationDispatcher().deliver(reply_id)
    except Exception as exc:
        job_try = ctx.get("job_try", 1)
        log.warning(
            "notifications.retry_failed",
            reply_id=reply_id,
            job_try=job_try,
            error=str(exc),
        )
        if job_try >= settings.notification_max_tries:
            log.error("notifications.retry_exhausted", reply_id=reply_id)
            raise
        raise Retry(defer=job_try * settings.notification_retry_delay_seconds) from exc

    log.info("notifications.redelivered", reply_id=reply_id, created=created)
    return created


async def startup(ctx: dict) -> None:
    configure_logging(settings.log_level, settings.log_format)


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [deliver_reply_notifications]
    on_startup = startup
    max_tries = settings.notification_max_tries
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
