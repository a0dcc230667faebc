"""
Profile endpoints: a user's threads, activity feed and notification inbox.

- GET /{name}: public profile
- GET /{name}/notifications: unread notifications (owner only)
- DELETE /{name}/notifications/{notification_id}: mark one as read (owner only)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core.auth import get_current_user, get_optional_user
from forum.core.database import get_session
from forum.core.errors import AuthorizationError, NotFoundError
from forum.models.activity import Activity
from forum.models.thread import Thread
from forum.models.user import User
from forum.services import notifications as notification_service
from forum.services import threads as thread_service
from forum_shared.schemas.users import NotificationListResponse, ProfileResponse

router = APIRouter()


async def _get_user_by_name_or_404(session: AsyncSession, name: str) -> User:
    result = await session.execute(select(User).where(User.name == name))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


def _require_self(profile_user: User, user: User) -> None:
    if profile_user.id != user.id:
        raise AuthorizationError()


@router.get("/{name}", response_model=ProfileResponse)
async def show_profile(
    name: str,
    viewer: Optional[User] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """The user's threads (newest first) and recent activity."""
    profile_user = await _get_user_by_name_or_404(session, name)

    result = await session.execute(
        select(Thread)
        .where(Thread.user_id == profile_user.id)
        .order_by(Thread.created_at.desc(), Thread.id.desc())
    )
    threads = list(result.scalars().all())

    result = await session.execute(
        select(Activity)
        .where(Activity.user_id == profile_user.id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(50)
    )
    activity = list(result.scalars().all())

    return {
        "user": profile_user,
        "threads": await thread_service.enrich_threads(
            session, threads, viewer.id if viewer else None
        ),
        "activity": activity,
    }


@router.get("/{name}/notifications", response_model=NotificationListResponse)
async def list_notifications(
    name: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Unread notifications, newest first."""
    profile_user = await _get_user_by_name_or_404(session, name)
    _require_self(profile_user, user)
    return {"data": await notification_service.unread_for(session, user.id)}


@router.delete("/{name}/notifications/{notification_id}", status_code=204)
async def mark_notification_read(
    name: str,
    notification_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Mark a notification as read."""
    profile_user = await _get_user_by_name_or_404(session, name)
    _require_self(profile_user, user)
    await notification_service.mark_as_read(session, notification_id, user.id)
    return Response(status_code=204)
