"""
Notification dispatch tests.

Tests cover:
- Mention and subscriber notifications
- Author exclusion and de-duplication
- Idempotent redelivery
- Failure isolation and retry scheduling
- Marking notifications as read
- The ARQ redelivery job
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from arq import Retry
from sqlalchemy import func
from sqlmodel import select

from forum.core.errors import AuthorizationError, NotFoundError
from forum.models.notification import Notification
from forum.models.reply import Reply
from forum.services import notifications, threads
from forum.services.notifications import DELIVER_JOB, NotificationDispatcher
from forum.tasks.notifications import deliver_reply_notifications


def _offline_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(enqueue=AsyncMock())


async def _notifications_for(session, user_id: int) -> list[Notification]:
    result = await session.execute(
        select(Notification).where(Notification.user_id == user_id).order_by(Notification.id)
    )
    return list(result.scalars().all())


class TestNotifyReply:
    """Who gets notified about a new reply."""

    async def test_duplicate_mentions_notify_once(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())

        await threads.create_reply(session, thread.id, alice.id, "hello @bob and @bob", _offline_dispatcher())

        mentions = [n for n in await _notifications_for(session, bob.id) if n.type == "mention"]
        assert len(mentions) == 1

    async def test_self_mention_is_ignored(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        thread = await create_thread(alice, await create_channel())

        await threads.create_reply(session, thread.id, alice.id, "note to self @alice", _offline_dispatcher())

        assert await _notifications_for(session, alice.id) == []

    async def test_unknown_names_are_ignored(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        thread = await create_thread(alice, await create_channel())

        await threads.create_reply(session, thread.id, alice.id, "@nobody @ghost", _offline_dispatcher())

        result = await session.execute(select(func.count()).select_from(Notification))
        assert result.scalar() == 0

    async def test_mention_is_case_sensitive(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())

        await threads.create_reply(session, thread.id, alice.id, "hi @Bob", _offline_dispatcher())

        assert await _notifications_for(session, bob.id) == []

    async def test_subscribers_except_author_notified(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        carol = await create_user("carol")
        thread = await create_thread(alice, await create_channel("general"))
        await threads.subscribe(session, thread.id, carol.id)
        await session.commit()

        reply = await threads.create_reply(session, thread.id, bob.id, "first!", _offline_dispatcher())

        [to_alice] = await _notifications_for(session, alice.id)
        [to_carol] = await _notifications_for(session, carol.id)
        assert to_alice.type == "thread_updated"
        assert to_alice.reply_id == reply.id
        assert to_alice.thread_id == thread.id
        assert to_alice.data == {
            "thread_title": "Hello",
            "thread_path": f"/api/v1/threads/general/{thread.id}",
            "reply_author": "bob",
        }
        assert to_carol.type == "thread_updated"
        assert await _notifications_for(session, bob.id) == []

    async def test_mentioned_subscriber_notified_once(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(bob, await create_channel())

        reply = await threads.create_reply(session, thread.id, alice.id, "hello @bob and @bob", _offline_dispatcher())

        [only] = await _notifications_for(session, bob.id)
        assert only.type == "mention"
        assert only.reply_id == reply.id

    async def test_redelivery_to_mentioned_subscriber_adds_nothing(
        self, session, create_user, create_channel, create_thread
    ):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(bob, await create_channel())
        dispatcher = _offline_dispatcher()
        reply = await threads.create_reply(session, thread.id, alice.id, "@bob look", dispatcher)

        assert await dispatcher.deliver(reply.id) == 0
        assert len(await _notifications_for(session, bob.id)) == 1

    async def test_redelivery_does_not_duplicate(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())
        dispatcher = _offline_dispatcher()
        reply = await threads.create_reply(session, thread.id, alice.id, "@bob hi", dispatcher)

        assert await dispatcher.deliver(reply.id) == 0
        assert len(await _notifications_for(session, bob.id)) == 1


class TestDispatcher:
    """Dispatch never fails the reply."""

    async def test_failure_keeps_reply_and_enqueues_retry(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())

        def broken_session_factory():
            raise RuntimeError("database unavailable")

        enqueue = AsyncMock()
        dispatcher = NotificationDispatcher(session_factory=broken_session_factory, enqueue=enqueue)

        reply = await threads.create_reply(session, thread.id, alice.id, "@bob hi", dispatcher)

        assert await session.get(Reply, reply.id) is not None
        assert await _notifications_for(session, bob.id) == []
        enqueue.assert_awaited_once_with(DELIVER_JOB, reply.id)

    async def test_enqueue_failure_is_swallowed(self):
        def broken_session_factory():
            raise RuntimeError("database unavailable")

        enqueue = AsyncMock(side_effect=ConnectionError("redis down"))
        dispatcher = NotificationDispatcher(session_factory=broken_session_factory, enqueue=enqueue)

        assert await dispatcher.dispatch(1) == 0
        enqueue.assert_awaited_once()

    async def test_deliver_raises(self):
        def broken_session_factory():
            raise RuntimeError("database unavailable")

        dispatcher = NotificationDispatcher(session_factory=broken_session_factory, enqueue=AsyncMock())
        with pytest.raises(RuntimeError):
            await dispatcher.deliver(1)

    async def test_deliver_for_deleted_reply(self):
        assert await _offline_dispatcher().deliver(424242) == 0


class TestInbox:
    """Listing and marking notifications as read."""

    async def test_mark_as_read(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())
        await threads.create_reply(session, thread.id, alice.id, "@bob ping", _offline_dispatcher())

        [unread] = await notifications.unread_for(session, bob.id)
        marked = await notifications.mark_as_read(session, unread.id, bob.id)
        await session.commit()

        assert marked.read_at is not None
        assert await notifications.unread_for(session, bob.id) == []

    async def test_cannot_mark_someone_elses(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())
        await threads.create_reply(session, thread.id, alice.id, "@bob ping", _offline_dispatcher())

        [unread] = await notifications.unread_for(session, bob.id)
        with pytest.raises(AuthorizationError):
            await notifications.mark_as_read(session, unread.id, alice.id)

    async def test_missing_notification(self, session, create_user):
        bob = await create_user("bob")
        with pytest.raises(NotFoundError):
            await notifications.mark_as_read(session, 999, bob.id)


class TestRedeliveryJob:
    """ARQ job wrapping NotificationDispatcher.deliver."""

    async def test_delivers(self, session, create_user, create_channel, create_thread):
        alice = await create_user("alice")
        bob = await create_user("bob")
        thread = await create_thread(alice, await create_channel())

        with patch.object(NotificationDispatcher, "dispatch", AsyncMock(return_value=0)):
            reply = await threads.create_reply(session, thread.id, alice.id, "@bob hi", NotificationDispatcher())
        assert await _notifications_for(session, bob.id) == []

        created = await deliver_reply_notifications({"job_try": 1}, reply.id)

        assert created == 1
        assert len(await _notifications_for(session, bob.id)) == 1

    async def test_failure_requests_retry(self):
        with patch.object(NotificationDispatcher, "deliver", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(Retry):
                await deliver_reply_notifications({"job_try": 1}, 1)

    async def test_last_try_reraises(self):
        with patch.object(NotificationDispatcher, "deliver", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError):
                await deliver_reply_notifications({"job_try": 99}, 1)
