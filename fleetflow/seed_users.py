"""
Database seeding script for initial users.

ADMIN accounts cannot be registered through the API, so the first admin
(and one account per staff role, for development) is created here.
Run this script after the database is set up but before first use.
"""

import asyncio
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from fleetflow.app.db.session import AsyncSessionLocal, engine, Base
from fleetflow.app.main import app  # noqa: F401  registers all models
from fleetflow.app.models.user import User
from fleetflow.app.models.enums import UserRole
from fleetflow.app.core.security import get_password_hash

SEED_USERS = [
    ("admin@fleetflow.example.com", "Fleet Admin", "admin123", UserRole.ADMIN),
    ("dispatch@fleetflow.example.com", "Dispatcher", "dispatch123", UserRole.DISPATCHER),
    ("safety@fleetflow.example.com", "Safety Officer", "safety123", UserRole.SAFETY_OFFICER),
    ("finance@fleetflow.example.com", "Finance Officer", "finance123", UserRole.FINANCE_OFFICER),
]


async def seed_users(session_factory: async_sessionmaker = AsyncSessionLocal) -> List[User]:
    """
    Seed one user per staff role.

    Skips any email that already exists, so the script is safe to re-run.
    Returns the users created by this run.
    """
    created = []
    async with session_factory() as db:
        for email, name, password, role in SEED_USERS:
            result = await db.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                print(f"ℹ️  {email} already exists, skipping")
                continue

            user = User(
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            )
            db.add(user)
            created.append(user)
            print(f"✅ Created {role.value} user ({email} / {password})")

        await db.commit()

    print(f"\n🎉 User seeding completed, {len(created)} new users")
    print("Note: DRIVER users register via POST /v1/auth/register with a driver_id")
    return created


async def _run():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_users()
    await engine.dispose()


def main():
    asyncio.run(_run())


if __name__ == "__main__":
    main()
