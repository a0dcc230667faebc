"""Channel model."""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin


class Channel(IDMixin, SQLModel, table=True):
    __tablename__ = "channels"

    name: str = Field(nullable=False)
    slug: str = Field(unique=True, nullable=False, index=True)  # immutable once threads reference it
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
