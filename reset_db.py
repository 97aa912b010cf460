# reset_db.py
import asyncio
import logging

from shared.config import settings, configure_logging
from shared.db import engine, Base
import create_db  # noqa: F401  registers every model

LOGGER = logging.getLogger(__name__)


async def reset_db(bind=engine):
    async with bind.begin() as conn:
        LOGGER.warning("Dropping all tables on %s", bind.url.render_as_string(hide_password=True))
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
        LOGGER.info("Tables recreated.")


if __name__ == "__main__":
    configure_logging(settings)
    asyncio.run(reset_db())
