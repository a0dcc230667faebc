"""Thread model.

A thread owns its replies and subscriptions. Rows are removed through
``forum.services.threads.delete_thread`` only; no ORM cascade rules are
declared here.
"""

from sqlmodel import Field, SQLModel

from forum.core.config import get_settings

from .base import IDMixin, TimestampMixin


class Thread(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "threads"

    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    channel_id: int = Field(foreign_key="channels.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    body: str = Field(nullable=False)


def thread_path(channel_slug: str, thread_id: int) -> str:
    """Canonical location of a thread, e.g. ``/api/v1/threads/general/10``."""
    return f"{get_settings().api_prefix}/threads/{channel_slug}/{thread_id}"
