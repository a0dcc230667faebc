"""
Thread endpoints: listing, creation, display, deletion, replies, subscriptions.

Mutations answer JSON callers with entity data (201 / 204) and browser
callers with a 303 redirect carrying a flash message cookie.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core.auth import get_current_user, get_optional_user
from forum.core.config import get_settings
from forum.core.database import get_session
from forum.core.responses import pop_flash, redirect_with_flash, wants_json
from forum.models.reply import Reply
from forum.models.thread import thread_path
from forum.models.user import User
from forum.services import threads as thread_service
from forum.services.filters import ThreadFilters
from forum.services.notifications import NotificationDispatcher
from forum_shared.schemas.common import (
    FLASH_REPLY_POSTED,
    FLASH_THREAD_DELETED,
    FLASH_THREAD_PUBLISHED,
    Pagination,
)
from forum_shared.schemas.threads import (
    ReplyCreate,
    ReplyListResponse,
    ReplyRead,
    SubscriptionStatus,
    ThreadCreate,
    ThreadRead,
    ThreadShowResponse,
)

settings = get_settings()
router = APIRouter()


def get_dispatcher() -> NotificationDispatcher:
    """Notification dispatcher dependency (overridden in tests)."""
    return NotificationDispatcher()


def _filters(
    by: Optional[str] = None,
    popular: bool = False,
    unanswered: bool = False,
) -> ThreadFilters:
    return ThreadFilters(by=by, popular=popular, unanswered=unanswered)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _enrich_replies(
    session: AsyncSession, replies: list[Reply], first_position: int
) -> list[dict]:
    """Add author name and display position to reply dicts."""
    if not replies:
        return []
    result = await session.execute(
        select(User.id, User.name).where(User.id.in_({r.user_id for r in replies}))
    )
    names = {row.id: row.name for row in result}
    return [
        {
            "id": r.id,
            "thread_id": r.thread_id,
            "user_id": r.user_id,
            "author_name": names.get(r.user_id, ""),
            "body": r.body,
            "position": first_position + i,
            "created_at": r.created_at,
        }
        for i, r in enumerate(replies)
    ]


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------


@router.get("", response_model=List[ThreadRead])
async def list_threads(
    filters: ThreadFilters = Depends(_filters),
    viewer: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """All threads, newest first."""
    threads = await thread_service.list_threads(session, filters=filters)
    return await thread_service.enrich_threads(session, threads, viewer.id if viewer else None)


@router.post("", response_model=ThreadRead, status_code=201)
async def create_thread(
    thread_in: ThreadCreate,
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Publish a thread. The author is subscribed to it automatically."""
    thread = await thread_service.create_thread(
        session,
        author_id=user.id,
        channel_id=thread_in.channel_id,
        title=thread_in.title,
        body=thread_in.body,
    )
    await session.commit()

    [data] = await thread_service.enrich_threads(session, [thread], user.id)
    if wants_json(request):
        return data
    return redirect_with_flash(data["path"], FLASH_THREAD_PUBLISHED)


@router.get("/{channel}", response_model=List[ThreadRead])
async def list_channel_threads(
    channel: str,
    filters: ThreadFilters = Depends(_filters),
    viewer: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """Threads in one channel, newest first."""
    channel_row = await thread_service.get_channel_by_slug(session, channel)
    threads = await thread_service.list_threads(session, channel=channel_row, filters=filters)
    return await thread_service.enrich_threads(session, threads, viewer.id if viewer else None)


@router.get("/{channel}/{thread_id}", response_model=ThreadShowResponse)
async def show_thread(
    channel: str,
    thread_id: int,
    request: Request,
    response: Response,
    viewer: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """A single thread, plus any pending flash message."""
    thread = await thread_service.get_thread(session, thread_id, channel)
    [data] = await thread_service.enrich_threads(session, [thread], viewer.id if viewer else None)
    return {"thread": data, "flash": pop_flash(request, response)}


@router.delete("/{channel}/{thread_id}", status_code=204)
async def delete_thread(
    channel: str,
    thread_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete a thread with its replies, subscriptions and notifications (author only)."""
    await thread_service.get_thread(session, thread_id, channel)
    await thread_service.delete_thread(session, thread_id, requester_id=user.id)
    await session.commit()

    if wants_json(request):
        return Response(status_code=204)
    return redirect_with_flash(f"{settings.api_prefix}/threads", FLASH_THREAD_DELETED)


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


@router.get("/{channel}/{thread_id}/replies", response_model=ReplyListResponse)
async def list_replies(
    channel: str,
    thread_id: int,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.replies_per_page, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Replies in display order, paginated."""
    await thread_service.get_thread(session, thread_id, channel)
    replies, total = await thread_service.list_replies(session, thread_id, page, per_page)
    return {
        "data": await _enrich_replies(session, replies, (page - 1) * per_page + 1),
        "pagination": Pagination(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        ),
    }


@router.post("/{channel}/{thread_id}/replies", response_model=ReplyRead, status_code=201)
async def create_reply(
    channel: str,
    thread_id: int,
    reply_in: ReplyCreate,
    request: Request,
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    session: AsyncSession = Depends(get_session),
):
    """Post a reply. Mentioned users and subscribers are notified."""
    await thread_service.get_thread(session, thread_id, channel)
    reply = await thread_service.create_reply(
        session,
        thread_id=thread_id,
        author_id=user.id,
        body=reply_in.body,
        dispatcher=dispatcher,
    )
    position = await thread_service.reply_position(session, reply)

    if wants_json(request):
        [data] = await _enrich_replies(session, [reply], position)
        return data
    return redirect_with_flash(thread_path(channel, thread_id), FLASH_REPLY_POSTED)


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


@router.post(
    "/{channel}/{thread_id}/subscriptions",
    response_model=SubscriptionStatus,
    status_code=201,
)
async def subscribe(
    channel: str,
    thread_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Subscribe to a thread. Subscribing twice is harmless."""
    await thread_service.get_thread(session, thread_id, channel)
    await thread_service.subscribe(session, thread_id, user.id)
    return SubscriptionStatus(thread_id=thread_id, user_id=user.id, subscribed=True)


@router.delete("/{channel}/{thread_id}/subscriptions", status_code=204)
async def unsubscribe(
    channel: str,
    thread_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Unsubscribe from a thread. A no-op when not subscribed."""
    await thread_service.get_thread(session, thread_id, channel)
    await thread_service.unsubscribe(session, thread_id, user.id)
    return Response(status_code=204)
