"""Database initialization utilities."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.core.config import settings
from engagement.db.base import Base
from engagement.db.session import engine
from engagement.models.configuration import MessagingEndpoint, PolicyUrlSet

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_tables() -> None:
    """Drop all database tables (use with caution)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")


async def seed_default_configuration(session: AsyncSession) -> None:
    """Create placeholder endpoint and policy records for local development.

    Existing records are left untouched.
    """
    result = await session.execute(
        select(MessagingEndpoint).where(
            MessagingEndpoint.key == settings.default_endpoint_key
        )
    )
    if result.scalar_one_or_none() is None:
        session.add(
            MessagingEndpoint(
                key=settings.default_endpoint_key,
                base_url="http://localhost:8081/omnichannel/v1/messages",
                channel_id="email",
                country="GB",
                config_item="pspb",
            )
        )
        logger.warning("Seeded placeholder messaging endpoint; update before use")

    result = await session.execute(
        select(PolicyUrlSet).where(PolicyUrlSet.key == settings.default_policy_key)
    )
    if result.scalar_one_or_none() is None:
        session.add(
            PolicyUrlSet(
                key=settings.default_policy_key,
                unsubscribe_url="http://localhost:3000/unsubscribe",
                terms_of_use_url="http://localhost:3000/terms",
                privacy_notice_url="http://localhost:3000/privacy",
            )
        )

    await session.commit()


async def init_db(session: AsyncSession) -> None:
    """Initialize database with required data."""
    await create_tables()
    await seed_default_configuration(session)
    logger.info("Database initialization complete")
