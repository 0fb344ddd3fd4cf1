"""
Script to create a local user and print a bearer token for manual testing.

    python -m app.scripts.create_local_user --email lead@example.com --name Lead --role team_leader
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import create_jwt
from app.core.database import async_session_factory, init_db
from app.models.user import User
from fieldcheck_shared.schemas.common import Role


async def ensure_user(session: AsyncSession, email: str, name: str, role: Role) -> tuple[User, bool]:
    """Return the user with ``email``, creating it if missing. Second item is True when created."""
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user, False

    user = User(email=email, name=name, role=role.value, status="active")
    session.add(user)
    await session.commit()
    return user, True


async def create_user(email: str, name: str, role: Role) -> None:
    await init_db()
    async with async_session_factory() as session:
        user, created = await ensure_user(session, email, name, role)

    print(f"{'Created' if created else 'Found existing'} {user.role}: {user.email} ({user.id})")
    print(f"Bearer token: {create_jwt(user.id, user.role)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a local Field Check user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.FIELD_WORKER.value)
    args = parser.parse_args()
    asyncio.run(create_user(args.email, args.name, Role(args.role)))


if __name__ == "__main__":
    main()
