"""
Thread aggregate: threads, their replies and their subscriptions.

Ownership rules
- A thread exclusively owns its replies and subscriptions
- A reply exclusively owns its notifications and activity rows
- Deleting a thread tears down every reply through ``delete_reply`` so
  per-reply cleanup always runs; replies are never bulk-deleted

Mutations flush but do not commit. The caller's session is the unit of work
(see ``forum.core.database.get_session``). The one exception is
``create_reply``, which commits the reply before notifications go out.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import and_, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core.errors import AuthorizationError, NotFoundError, ValidationError
from forum.models.activity import Activity
from forum.models.channel import Channel
from forum.models.reply import Reply
from forum.models.subscription import Subscription
from forum.models.thread import Thread, thread_path
from forum.models.user import User
from forum.services import notifications, subscriptions
from forum.services.filters import ThreadFilters
from forum.services.notifications import NotificationDispatcher
from forum.services.policies import can_delete, can_delete_reply
from forum_shared.schemas.common import ActivityType, SubjectType

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_thread(
    session: AsyncSession, thread_id: int, channel_slug: Optional[str] = None
) -> Thread:
    """Load a thread. With a slug, the thread must also live in that channel."""
    thread = await session.get(Thread, thread_id)
    if thread is None:
        raise NotFoundError("Thread not found")
    if channel_slug is not None:
        channel = await session.get(Channel, thread.channel_id)
        if channel is None or channel.slug != channel_slug:
            raise NotFoundError("Thread not found")
    return thread


async def get_channel_by_slug(session: AsyncSession, slug: str) -> Channel:
    result = await session.execute(select(Channel).where(Channel.slug == slug))
    channel = result.scalars().first()
    if channel is None:
        raise NotFoundError("Channel not found")
    return channel


async def list_threads(
    session: AsyncSession,
    channel: Optional[Channel] = None,
    filters: Optional[ThreadFilters] = None,
) -> list[Thread]:
    """Threads newest first, optionally limited to one channel and filtered."""
    stmt = select(Thread)
    if channel is not None:
        stmt = stmt.where(Thread.channel_id == channel.id)
    if filters is not None:
        stmt = filters.apply(stmt)
    stmt = stmt.order_by(Thread.created_at.desc(), Thread.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_replies(
    session: AsyncSession, thread_id: int, page: int = 1, per_page: int = 20
) -> tuple[list[Reply], int]:
    """One page of replies in display order, plus the thread's total reply count."""
    total_result = await session.execute(
        select(func.count()).select_from(Reply).where(Reply.thread_id == thread_id)
    )
    total = total_result.scalar() or 0

    result = await session.execute(
        select(Reply)
        .where(Reply.thread_id == thread_id)
        .order_by(Reply.created_at, Reply.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def reply_position(session: AsyncSession, reply: Reply) -> int:
    """1-based index of a reply in its thread's display order."""
    result = await session.execute(
        select(func.count())
        .select_from(Reply)
        .where(
            Reply.thread_id == reply.thread_id,
            or_(
                Reply.created_at < reply.created_at,
                and_(Reply.created_at == reply.created_at, Reply.id <= reply.id),
            ),
        )
    )
    return result.scalar() or 0


async def enrich_threads(
    session: AsyncSession, threads: list[Thread], viewer_id: Optional[int] = None
) -> list[dict]:
    """Add author name, channel slug, path, reply count and subscription flag."""
    if not threads:
        return []

    thread_ids = [t.id for t in threads]

    authors_result = await session.execute(
        select(User.id, User.name).where(User.id.in_({t.user_id for t in threads}))
    )
    authors = {row.id: row.name for row in authors_result}

    channels_result = await session.execute(
        select(Channel.id, Channel.slug).where(Channel.id.in_({t.channel_id for t in threads}))
    )
    slugs = {row.id: row.slug for row in channels_result}

    counts_result = await session.execute(
        select(Reply.thread_id, func.count().label("cnt"))
        .where(Reply.thread_id.in_(thread_ids))
        .group_by(Reply.thread_id)
    )
    counts = {row.thread_id: row.cnt for row in counts_result}

    subscribed: set[int] = set()
    if viewer_id is not None:
        sub_result = await session.execute(
            select(Subscription.thread_id).where(
                Subscription.thread_id.in_(thread_ids),
                Subscription.user_id == viewer_id,
            )
        )
        subscribed = {row[0] for row in sub_result.all()}

    results = []
    for t in threads:
        slug = slugs.get(t.channel_id, "")
        results.append(
            {
                "id": t.id,
                "user_id": t.user_id,
                "channel_id": t.channel_id,
                "channel_slug": slug,
                "author_name": authors.get(t.user_id, ""),
                "title": t.title,
                "body": t.body,
                "path": thread_path(slug, t.id),
                "replies_count": counts.get(t.id, 0),
                "is_subscribed_to": t.id in subscribed,
                "created_at": t.created_at,
                "updated_at": t.updated_at,
            }
        )
    return results


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------


async def create_thread(
    session: AsyncSession,
    author_id: int,
    channel_id: Optional[int],
    title: str,
    body: str,
) -> Thread:
    """Validate, then persist the thread, its activity and the author's subscription."""
    errors: dict[str, list[str]] = {}
    if channel_id is None:
        errors["channel_id"] = ["The channel id field is required."]
    elif await session.get(Channel, channel_id) is None:
        errors["channel_id"] = ["The selected channel id is invalid."]
    if not (title or "").strip():
        errors["title"] = ["The title field is required."]
    if not (body or "").strip():
        errors["body"] = ["The body field is required."]
    if errors:
        raise ValidationError(errors)

    thread = Thread(user_id=author_id, channel_id=channel_id, title=title, body=body)
    session.add(thread)
    await session.flush()  # get thread.id

    session.add(
        Activity(
            user_id=author_id,
            type=ActivityType.CREATED_THREAD.value,
            subject_type=SubjectType.THREAD.value,
            subject_id=thread.id,
        )
    )
    await subscriptions.add(session, thread.id, author_id)
    await session.flush()

    log.info("thread.created", thread_id=thread.id, channel_id=channel_id, user_id=author_id)
    return thread


async def delete_thread(session: AsyncSession, thread_id: int, requester_id: int) -> None:
    """Delete a thread and everything it owns, inside the caller's transaction.

    Order: replies (each through ``delete_reply``), subscriptions, the
    thread's activity, then the thread row.
    """
    thread = await session.get(Thread, thread_id)
    if thread is None:
        raise NotFoundError("Thread not found")
    if not can_delete(thread, requester_id):
        raise AuthorizationError()

    result = await session.execute(
        select(Reply).where(Reply.thread_id == thread_id).order_by(Reply.id)
    )
    replies = list(result.scalars().all())
    for reply in replies:
        await delete_reply(session, reply)

    subs = await subscriptions.for_thread(session, thread_id)
    for subscription in subs:
        await session.delete(subscription)
    await session.flush()

    await session.execute(
        delete(Activity).where(
            Activity.subject_type == SubjectType.THREAD.value,
            Activity.subject_id == thread_id,
        )
    )

    await session.delete(thread)
    await session.flush()

    log.info(
        "thread.deleted",
        thread_id=thread_id,
        user_id=requester_id,
        replies=len(replies),
        subscriptions=len(subs),
    )


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


async def create_reply(
    session: AsyncSession,
    thread_id: int,
    author_id: int,
    body: str,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> Reply:
    """Persist a reply and its activity, commit, then send notifications.

    Notification delivery runs in its own session; a failure there is
    logged and retried by the job queue and never undoes the reply.
    """
    thread = await session.get(Thread, thread_id)
    if thread is None:
        raise NotFoundError("Thread not found")
    if not (body or "").strip():
        raise ValidationError({"body": ["The body field is required."]})

    reply = Reply(thread_id=thread_id, user_id=author_id, body=body)
    session.add(reply)
    await session.flush()  # get reply.id

    session.add(
        Activity(
            user_id=author_id,
            type=ActivityType.CREATED_REPLY.value,
            subject_type=SubjectType.REPLY.value,
            subject_id=reply.id,
        )
    )
    await session.commit()
    log.info("reply.created", reply_id=reply.id, thread_id=thread_id, user_id=author_id)

    await (dispatcher or NotificationDispatcher()).dispatch(reply.id)
    return reply


async def delete_reply(
    session: AsyncSession, reply: Reply, requester_id: Optional[int] = None
) -> None:
    """Destroy a reply with its notifications and activity.

    ``requester_id`` is checked against reply ownership when given; the
    thread cascade calls this without one.
    """
    if requester_id is not None and not can_delete_reply(reply, requester_id):
        raise AuthorizationError()

    removed = await notifications.delete_for_reply(session, reply.id)
    await session.execute(
        delete(Activity).where(
            Activity.subject_type == SubjectType.REPLY.value,
            Activity.subject_id == reply.id,
        )
    )
    await session.flush()

    await session.delete(reply)
    await session.flush()
    log.debug("reply.deleted", reply_id=reply.id, thread_id=reply.thread_id, notifications=removed)


async def get_reply(session: AsyncSession, reply_id: int) -> Reply:
    reply = await session.get(Reply, reply_id)
    if reply is None:
        raise NotFoundError("Reply not found")
    return reply


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


async def subscribe(session: AsyncSession, thread_id: int, user_id: int) -> None:
    await get_thread(session, thread_id)
    await subscriptions.add(session, thread_id, user_id)


async def unsubscribe(session: AsyncSession, thread_id: int, user_id: int) -> None:
    await get_thread(session, thread_id)
    await subscriptions.remove(session, thread_id, user_id)


async def is_subscribed(session: AsyncSession, thread_id: int, user_id: int) -> bool:
    return await subscriptions.exists(session, thread_id, user_id)
