"""
Query-string filters for thread listings.

    GET /threads?by=alice          threads started by alice
    GET /threads?popular=1         most replies first
    GET /threads?unanswered=1      threads nobody has replied to yet
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.sql import Select

from forum.models.reply import Reply
from forum.models.thread import Thread
from forum.models.user import User


def replies_count_column():
    return (
        select(func.count(Reply.id))
        .where(Reply.thread_id == Thread.id)
        .correlate(Thread)
        .scalar_subquery()
    )


@dataclass
class ThreadFilters:
    by: Optional[str] = None
    popular: bool = False
    unanswered: bool = False

    def apply(self, stmt: Select) -> Select:
        if self.by:
            stmt = stmt.where(
                Thread.user_id.in_(select(User.id).where(User.name == self.by))
            )
        if self.unanswered:
            stmt = stmt.where(replies_count_column() == 0)
        if self.popular:
            stmt = stmt.order_by(replies_count_column().desc())
        return stmt
