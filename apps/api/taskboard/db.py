from __future__ import annotations

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from taskboard.config import settings
from taskboard.models import Base


def _engine_kwargs(url: str) -> dict:
  if url.startswith("sqlite"):
    # aiosqlite connections are bound to the loop that opened them.
    return {"poolclass": NullPool}
  return {"pool_size": 20, "pool_pre_ping": True}


engine = create_async_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.create_all)
