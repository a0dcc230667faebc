"""
Channel endpoints.

- GET /: List channels, alphabetically
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core.database import get_session
from forum.models.channel import Channel
from forum_shared.schemas.threads import ChannelRead

router = APIRouter()


@router.get("", response_model=List[ChannelRead])
async def list_channels(session: AsyncSession = Depends(get_session)):
    """Every channel a thread can be published in."""
    result = await session.execute(select(Channel).order_by(Channel.name, Channel.id))
    return result.scalars().all()
