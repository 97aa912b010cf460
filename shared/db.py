# shared/db.py
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from shared.config import settings


def build_engine(database_url: str, echo: bool = False):
    # In-memory SQLite needs a single shared connection or every session sees an empty db
    if database_url.startswith("sqlite") and (":memory:" in database_url or database_url.endswith("://")):
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(bind) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.sql_echo)
AsyncSessionLocal = build_session_factory(engine)

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
