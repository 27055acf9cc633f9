"""
Database seeding script for the initial admin account.

Run this script after the database is set up but before first use.
Credentials come from SEED_ADMIN_USERNAME / SEED_ADMIN_EMAIL /
SEED_ADMIN_PASSWORD (see app/core/config.py for the defaults).
"""

import asyncio

from sqlalchemy import select, or_
from tracking_backend.app.core.config import settings
from tracking_backend.app.core.security import get_password_hash
from tracking_backend.app.db.session import AsyncSessionLocal, engine, Base
from tracking_backend.app.models.user import User
import tracking_backend.app.main  # noqa: F401  registers every model on Base


async def seed_admin() -> bool:
    """
    Create the admin account unless one with the same username/email exists.

    Returns:
        True if a user was created
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting admin seeding...")

        result = await db.execute(
            select(User).where(
                or_(User.username == settings.seed_admin_username, User.email == settings.seed_admin_email)
            )
        )
        if result.scalar_one_or_none():
            print("Admin user already exists, skipping seeding")
            return False

        db.add(User(
            email=settings.seed_admin_email,
            username=settings.seed_admin_username,
            hashed_password=get_password_hash(settings.seed_admin_password),
            is_active=True
        ))
        await db.commit()

    print(f"Created admin user (username: {settings.seed_admin_username})")
    return True


async def main():
    try:
        await seed_admin()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
