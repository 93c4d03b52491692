import argparse
import asyncio
import logging
import sys

from wayfarer.app.core.config import get_settings
from wayfarer.app.core.logging import configure_logging
from wayfarer.app.db.base import AsyncSessionLocal, Base, engine
from wayfarer.app.models import Role, User
from wayfarer.app.security import hashing
from wayfarer.app.security.codec import generate_master_key
from wayfarer.app.services import identity

logger = logging.getLogger("init_db")


async def init_models(reset: bool = False):
    async with engine.begin() as conn:
        if reset:
            # Drops every table. DEV MODE ONLY
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def seed_admin(email: str, password: str):
    """Make sure at least one ADMIN exists."""
    async with AsyncSessionLocal() as db:
        if await identity.count_admins(db) > 0:
            logger.info("Admin already present, nothing to seed")
            return

        user = await identity.get_user_by_email(db, email)
        if user is None:
            user = User(
                email=identity.normalize_email(email),
                name="Administrator",
                hashed_password=hashing.get_password_hash(password),
                role=Role.ADMIN,
            )
        else:
            user.role = Role.ADMIN
        db.add(user)
        await db.commit()
        logger.info("Seeded admin user_id=%s", user.id)


async def main(reset: bool):
    settings = get_settings()
    await init_models(reset=reset)
    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        await seed_admin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    else:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin seed")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed the first admin.")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    parser.add_argument("--generate-key", action="store_true", help="print a new JOURNAL_ENCRYPTION_KEY and exit")
    args = parser.parse_args()

    if args.generate_key:
        print(generate_master_key())
        sys.exit(0)

    configure_logging(get_settings().LOG_LEVEL)
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main(args.reset))
