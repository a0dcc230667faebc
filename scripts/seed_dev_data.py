#!/usr/bin/env python3
"""Seed a development database with channels, users, threads and replies.

Usage:
    python scripts/seed_dev_data.py

Uses FORUM_DATABASE_URL (or the localhost default). Tables are created if
missing. Notifications are recorded inline, so no ARQ worker is needed.
"""

import asyncio

from sqlmodel import select

from forum.core.auth import hash_password
from forum.core.database import async_session_factory, engine, get_session_context, init_db
from forum.models.channel import Channel
from forum.models.user import User
from forum.services import threads
from forum.services.notifications import NotificationDispatcher

CHANNELS = [("General", "general"), ("Python", "python"), ("Off Topic", "off-topic")]
USERS = ["alice", "bob", "carol"]
DEV_PASSWORD = "password123"

THREADS = [
    ("alice", "general", "Welcome to the forum", "Say hi and introduce yourself."),
    ("bob", "python", "Async SQLAlchemy sessions", "How do you scope sessions per request?"),
    ("carol", "off-topic", "Weekend plans", "Anything fun coming up?"),
]
REPLIES = [
    (0, "bob", "Hi everyone, @alice thanks for setting this up!"),
    (0, "carol", "Hello! cc @bob"),
    (1, "alice", "One session per request, committed by the dependency. @carol agrees."),
]


async def _seed_reference_data() -> tuple[dict, dict]:
    async with get_session_context() as session:
        users = {}
        for name in USERS:
            result = await session.execute(select(User).where(User.name == name))
            user = result.scalar_one_or_none()
            if not user:
                user = User(
                    name=name,
                    email=f"{name}@forum.dev",
                    password_hash=hash_password(DEV_PASSWORD),
                )
                session.add(user)
            users[name] = user

        channels = {}
        for name, slug in CHANNELS:
            result = await session.execute(select(Channel).where(Channel.slug == slug))
            channel = result.scalar_one_or_none()
            if not channel:
                channel = Channel(name=name, slug=slug)
                session.add(channel)
            channels[slug] = channel

        await session.flush()
        return {n: u.id for n, u in users.items()}, {s: c.id for s, c in channels.items()}


async def seed():
    await init_db()
    user_ids, channel_ids = await _seed_reference_data()

    thread_ids = []
    async with get_session_context() as session:
        for author, slug, title, body in THREADS:
            thread = await threads.create_thread(
                session, user_ids[author], channel_ids[slug], title, body
            )
            thread_ids.append(thread.id)

    dispatcher = NotificationDispatcher(session_factory=async_session_factory)
    async with get_session_context() as session:
        for index, author, body in REPLIES:
            await threads.create_reply(
                session, thread_ids[index], user_ids[author], body, dispatcher=dispatcher
            )

    await engine.dispose()
    print(
        f"Seeded {len(CHANNELS)} channels, {len(USERS)} users "
        f"(password '{DEV_PASSWORD}'), {len(THREADS)} threads, {len(REPLIES)} replies."
    )


if __name__ == "__main__":
    asyncio.run(seed())
