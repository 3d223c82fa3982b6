from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.deps import get_db
from taskboard.schemas import UserListOut
from taskboard.tasks import service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListOut)
async def list_users(
  q: str | None = Query(default=None, max_length=100, description="Case-insensitive name filter"),
  db: AsyncSession = Depends(get_db),
) -> UserListOut:
  users = await service.find_users_by_name(db, q) if q and q.strip() else await service.list_users(db)
  return UserListOut(users=[service.user_out(u) for u in users])
