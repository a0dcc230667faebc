"""
Subscription store: the per-thread set of subscribed users.

Both mutations are idempotent. Duplicate subscribes collapse on the
(thread_id, user_id) primary key, not on an application-level check.
"""

from __future__ import annotations

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core.database import insert_ignoring_conflicts
from forum.models.subscription import Subscription

log = structlog.get_logger()


async def add(session: AsyncSession, thread_id: int, user_id: int) -> bool:
    """Subscribe a user. Returns False when the subscription already existed."""
    inserted = await insert_ignoring_conflicts(
        session,
        Subscription.__table__,
        [{"thread_id": thread_id, "user_id": user_id}],
        ["thread_id", "user_id"],
    )
    if inserted:
        log.info("subscription.created", thread_id=thread_id, user_id=user_id)
    return bool(inserted)


async def remove(session: AsyncSession, thread_id: int, user_id: int) -> bool:
    """Unsubscribe a user. Returns False when there was nothing to remove."""
    result = await session.execute(
        delete(Subscription).where(
            Subscription.thread_id == thread_id,
            Subscription.user_id == user_id,
        )
    )
    removed = bool(result.rowcount)
    if removed:
        log.info("subscription.removed", thread_id=thread_id, user_id=user_id)
    return removed


async def exists(session: AsyncSession, thread_id: int, user_id: int) -> bool:
    result = await session.execute(
        select(func.count()).select_from(Subscription).where(
            Subscription.thread_id == thread_id,
            Subscription.user_id == user_id,
        )
    )
    return (result.scalar() or 0) > 0


async def subscriber_ids(session: AsyncSession, thread_id: int) -> list[int]:
    result = await session.execute(
        select(Subscription.user_id)
        .where(Subscription.thread_id == thread_id)
        .order_by(Subscription.user_id)
    )
    return [row[0] for row in result.all()]


async def for_thread(session: AsyncSession, thread_id: int) -> list[Subscription]:
    result = await session.execute(
        select(Subscription).where(Subscription.thread_id == thread_id)
    )
    return list(result.scalars().all())
