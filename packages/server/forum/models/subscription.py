"""Thread subscription model. The composite key is the uniqueness constraint."""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class Subscription(SQLModel, table=True):
    __tablename__ = "thread_subscriptions"

    thread_id: int = Field(foreign_key="threads.id", primary_key=True)
    user_id: int = Field(foreign_key="users.id", primary_key=True, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
