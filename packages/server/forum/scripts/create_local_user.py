"""
Script to create a forum user with a password for local testing.

    python -m forum.scripts.create_local_user --name alice --email alice@example.com --password secret123
"""

import argparse
import asyncio

from sqlmodel import select

from forum.core.auth import hash_password
from forum.core.database import get_session_context
from forum.models.user import User


async def create_user(name: str, email: str, password: str) -> User:
    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            print(f"User {email} already exists.")
            return user

        user = User(name=name, email=email, password_hash=hash_password(password))
        session.add(user)
        await session.flush()  # get user.id
        print(f"Created user @{name} ({email}) with id {user.id}.")
        return user


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create a local forum user.")
    parser.add_argument("--name", required=True, help="Mention handle, e.g. alice")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    args = parser.parse_args(argv)

    asyncio.run(create_user(args.name, args.email, args.password))


if __name__ == "__main__":
    main()
