"""Notification model (at most one row per recipient and reply)."""

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import IDMixin


class Notification(IDMixin, SQLModel, table=True):
    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("user_id", "reply_id", name="uq_notifications_recipient_reply"),
    )

    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    reply_id: int = Field(foreign_key="replies.id", nullable=False, index=True)
    thread_id: int = Field(foreign_key="threads.id", nullable=False, index=True)
    type: str = Field(nullable=False)  # mention | thread_updated
    data: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
    read_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
