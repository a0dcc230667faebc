"""ARQ job queue connection management."""

from __future__ import annotations

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from forum.core.config import get_settings

settings = get_settings()

_queue_pool: ArqRedis | None = None


async def get_queue() -> ArqRedis:
    """Get or create the ARQ Redis pool."""
    global _queue_pool
    if _queue_pool is None:
        _queue_pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
    return _queue_pool


async def enqueue(function: str, *args: Any, **kwargs: Any) -> None:
    """Enqueue a job by its registered function name."""
    queue = await get_queue()
    await queue.enqueue_job(function, *args, **kwargs)


async def close_queue() -> None:
    """Close the ARQ Redis pool."""
    global _queue_pool
    if _queue_pool is not None:
        await _queue_pool.close()
        _queue_pool = None
