import uuid
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from schoolportal.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine, by backend."""
    options: Dict[str, Any] = {"echo": settings.db_echo, "future": True}
    if make_url(database_url).get_backend_name() == "sqlite":
        # Single-file or in-memory store: no server to drop idle connections.
        return options
    options["pool_pre_ping"] = True
    options["pool_recycle"] = settings.db_pool_recycle_seconds
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


def generate_id() -> str:
    return str(uuid.uuid4())


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
