"""Activity feed model. Owned by its subject (a thread or a reply)."""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin


class Activity(IDMixin, SQLModel, table=True):
    __tablename__ = "activities"

    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    type: str = Field(nullable=False)  # created_thread | created_reply
    subject_type: str = Field(nullable=False)  # thread | reply
    subject_id: int = Field(nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
