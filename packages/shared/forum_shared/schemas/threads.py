"""Thread, reply and channel schemas shared by the server and client codegen."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import Pagination


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

class ChannelRead(BaseModel):
    id: int
    name: str
    slug: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------

class ThreadCreate(BaseModel):
    """Request body for POST /threads.

    Emptiness and channel existence are checked by the thread service,
    which reports every failing field in one error map.
    """
    channel_id: Optional[int] = None
    title: str = ""
    body: str = ""


class ThreadRead(BaseModel):
    id: int
    user_id: int
    channel_id: int
    channel_slug: str
    author_name: str
    title: str
    body: str
    path: str
    replies_count: int = 0
    is_subscribed_to: bool = False
    created_at: datetime
    updated_at: datetime


class ThreadShowResponse(BaseModel):
    thread: ThreadRead
    flash: Optional[str] = None


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------

class ReplyCreate(BaseModel):
    body: str = ""


class ReplyRead(BaseModel):
    id: int
    thread_id: int
    user_id: int
    author_name: str
    body: str
    position: int
    created_at: datetime


class ReplyListResponse(BaseModel):
    data: List[ReplyRead] = Field(default_factory=list)
    pagination: Pagination


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

class SubscriptionStatus(BaseModel):
    thread_id: int
    user_id: int
    subscribed: bool
