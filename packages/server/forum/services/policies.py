"""
Authorization policies. Pure predicates over an entity and the requester id;
callers decide what to raise.
"""

from __future__ import annotations

from typing import Optional

from forum.models.reply import Reply
from forum.models.thread import Thread


def can_delete(thread: Thread, requester_id: Optional[int]) -> bool:
    """Only the author may delete a thread."""
    return requester_id is not None and thread.user_id == requester_id


def can_delete_reply(reply: Reply, requester_id: Optional[int]) -> bool:
    return requester_id is not None and reply.user_id == requester_id
