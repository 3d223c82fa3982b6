from __future__ import annotations

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.ai.providers import AIProvider, get_ai_provider
from taskboard.config import settings
from taskboard.db import SessionLocal
from taskboard.rate_limit import limiter


async def get_db() -> AsyncSession:
  async with SessionLocal() as session:
    yield session


def get_provider() -> AIProvider:
  return get_ai_provider()


def client_ip(request: Request) -> str | None:
  return request.client.host if request.client else None


async def assistant_rate_limit(request: Request) -> None:
  ip = client_ip(request) or "unknown"
  allowed, retry_after = limiter.hit(
    f"assistant:{ip}",
    limit=settings.rate_limit_assistant_per_minute,
    window_seconds=60,
  )
  if not allowed:
    raise HTTPException(
      status_code=status.HTTP_429_TOO_MANY_REQUESTS,
      detail="Too many assistant requests; try again shortly",
      headers={"Retry-After": str(retry_after)},
    )
