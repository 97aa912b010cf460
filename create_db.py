# create_db.py
import asyncio
import logging

from shared.config import settings, configure_logging
from shared.db import engine, Base

# Import all models here so they are registered with SQLAlchemy's metadata
import services.user_management.models
import services.academic.models
import services.timetable.models
import services.attendance_management_system.models
import services.finance.models

LOGGER = logging.getLogger(__name__)


async def init_models(bind=engine):
    async with bind.begin() as conn:
        LOGGER.info("Creating tables...")
        await conn.run_sync(Base.metadata.create_all)
        LOGGER.info("Tables created.")


if __name__ == "__main__":
    configure_logging(settings)
    asyncio.run(init_models())
