"""
Reply endpoints that are addressed by reply id alone.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.auth import get_current_user
from forum.core.database import get_session
from forum.models.user import User
from forum.services import threads as thread_service

router = APIRouter()


@router.delete("/{reply_id}", status_code=204)
async def delete_reply(
    reply_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete one of your own replies, with its notifications and activity."""
    reply = await thread_service.get_reply(session, reply_id)
    await thread_service.delete_reply(session, reply, requester_id=user.id)
    return Response(status_code=204)
