"""
Bootstrap of the default system administrator.

Runs at startup (see main.lifespan) and never overwrites an existing
account with the configured email.
Run with: python -m dealership.seed
"""

import asyncio

from dealership.core.config import Settings, get_settings
from dealership.core.database import transaction
from dealership.core.logging import get_logger, setup_logging
from dealership.core.security import hash_password
from dealership.models.account import Account, AccountRole
from dealership.repositories.account import AccountRepository, AccountStore

logger = get_logger("seed")


async def seed_default_admin(repo: AccountStore, settings: Settings) -> Account | None:
    """
    Create the SYSTEM ADMIN account if it does not exist yet.
    Returns the new account, or None when nothing was created.
    """
    email = settings.DEFAULT_ADMIN_EMAIL.strip().lower()
    password = settings.DEFAULT_ADMIN_PASSWORD
    if not email or not password:
        logger.warning("DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD not set - skipping admin seed")
        return None

    if await repo.find_by_email(email) is not None:
        logger.info("Default admin %s already present", email)
        return None

    account = await repo.create(
        email=email,
        name="SYSTEM",
        surname="ADMIN",
        hashed_password=hash_password(password),
        role=AccountRole.SYSTEM_ADMIN,
        verified=True,
        active=True,
    )
    logger.info("Default system admin created: %s", email)
    return account


async def run_seed(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    async with transaction() as session:
        await seed_default_admin(AccountRepository(session), settings)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run_seed())
