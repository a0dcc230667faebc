"""
Notification dispatch: turns "a reply was created" into notification rows.

- Mentioned users (except the reply author) get a ``mention`` notification
- Other thread subscribers (not the author, not mentioned) get a ``thread_updated`` one
- Rows are unique per (recipient, reply), so redelivery is harmless

Dispatch runs in its own unit of work after the reply has been committed.
A failure is logged and handed to the ARQ retry job; it never reaches the
request that created the reply.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core import queue
from forum.core.database import async_session_factory, insert_ignoring_conflicts
from forum.core.errors import AuthorizationError, NotFoundError
from forum.models.channel import Channel
from forum.models.notification import Notification
from forum.models.reply import Reply
from forum.models.thread import Thread, thread_path
from forum.models.user import User
from forum.services import subscriptions
from forum.services.mentions import mentioned_usernames
from forum_shared.schemas.common import NotificationType

log = structlog.get_logger()

DELIVER_JOB = "deliver_reply_notifications"


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


async def resolve_mentioned_users(session: AsyncSession, body: str) -> list[User]:
    """Users whose exact name is mentioned in ``body``."""
    candidates = mentioned_usernames(body)
    if not candidates:
        return []
    result = await session.execute(
        select(User).where(User.name.in_(sorted(candidates))).order_by(User.id)
    )
    users = list(result.scalars().all())
    known = mentioned_usernames(body, [u.name for u in users])
    return [u for u in users if u.name in known]


async def _notification_data(session: AsyncSession, reply: Reply) -> tuple[int, dict]:
    result = await session.execute(
        select(Thread, Channel.slug)
        .join(Channel, Channel.id == Thread.channel_id)
        .where(Thread.id == reply.thread_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Thread not found")
    thread, channel_slug = row
    author = await session.get(User, reply.user_id)
    return thread.id, {
        "thread_title": thread.title,
        "thread_path": thread_path(channel_slug, thread.id),
        "reply_author": author.name if author else None,
    }


async def notify_reply(session: AsyncSession, reply: Reply) -> int:
    """Record notifications for a new reply. Returns the number of new rows."""
    thread_id, data = await _notification_data(session, reply)

    mentioned = [u.id for u in await resolve_mentioned_users(session, reply.body)]
    subscribed = await subscriptions.subscriber_ids(session, thread_id)

    # Mentioned subscribers get the mention only.
    notified = {reply.user_id, *mentioned}

    rows = [
        {
            "user_id": user_id,
            "reply_id": reply.id,
            "thread_id": thread_id,
            "type": NotificationType.MENTION.value,
            "data": data,
            "created_at": datetime.now(timezone.utc),
        }
        for user_id in mentioned
        if user_id != reply.user_id
    ]
    rows += [
        {
            "user_id": user_id,
            "reply_id": reply.id,
            "thread_id": thread_id,
            "type": NotificationType.THREAD_UPDATED.value,
            "data": data,
            "created_at": datetime.now(timezone.utc),
        }
        for user_id in subscribed
        if user_id not in notified
    ]

    created = await insert_ignoring_conflicts(
        session,
        Notification.__table__,
        rows,
        ["user_id", "reply_id"],
    )
    log.info(
        "notifications.recorded",
        reply_id=reply.id,
        thread_id=thread_id,
        mentioned=len(mentioned),
        subscribers=len(subscribed),
        created=created,
    )
    return created


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class NotificationDispatcher:
    """Delivers reply notifications in a unit of work of its own."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
        enqueue: Callable[..., Awaitable[None]] = queue.enqueue,
    ) -> None:
        self._session_factory = session_factory
        self._enqueue = enqueue

    async def deliver(self, reply_id: int) -> int:
        """Record notifications for a reply and commit. Raises on failure."""
        async with self._session_factory() as session:
            reply = await session.get(Reply, reply_id)
            if reply is None:
                # Thread (and reply) deleted before delivery ran.
                log.info("notifications.reply_gone", reply_id=reply_id)
                return 0
            created = await notify_reply(session, reply)
            await session.commit()
            return created

    async def dispatch(self, reply_id: int) -> int:
        """Deliver now; on failure log and schedule a retry. Never raises."""
        try:
            return await self.deliver(reply_id)
        except Exception as exc:
            log.warning("notifications.dispatch_failed", reply_id=reply_id, error=str(exc))
            await self._schedule_retry(reply_id)
            return 0

    async def _schedule_retry(self, reply_id: int) -> None:
        try:
            await self._enqueue(DELIVER_JOB, reply_id)
            log.info("notifications.retry_enqueued", reply_id=reply_id)
        except Exception as exc:
            log.error("notifications.enqueue_failed", reply_id=reply_id, error=str(exc))


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------


async def unread_for(session: AsyncSession, user_id: int) -> list[Notification]:
    result = await session.execute(
        select(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(result.scalars().all())


async def mark_as_read(
    session: AsyncSession, notification_id: int, user_id: int
) -> Notification:
    notification = await session.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != user_id:
        raise AuthorizationError()
    if notification.read_at is None:
        notification.read_at = datetime.now(timezone.utc)
        session.add(notification)
        await session.flush()
    return notification


async def delete_for_reply(session: AsyncSession, reply_id: int) -> int:
    """Remove every notification that points at a reply. Part of reply teardown."""
    result = await session.execute(
        select(Notification).where(Notification.reply_id == reply_id)
    )
    rows = result.scalars().all()
    for notification in rows:
        await session.delete(notification)
    return len(rows)
