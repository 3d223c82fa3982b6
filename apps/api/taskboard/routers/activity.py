from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.deps import get_db
from taskboard.models import ActivityEvent
from taskboard.schemas import ActivityListOut, ActivityOut
from taskboard.tasks import service

router = APIRouter(prefix="/api/activity", tags=["activity"])


def _activity_out(e: ActivityEvent) -> ActivityOut:
  return ActivityOut(
    id=e.id,
    eventType=e.event_type,
    taskId=e.task_id,
    payload=dict(e.payload or {}),
    createdAt=e.created_at,
  )


@router.get("", response_model=ActivityListOut)
async def list_activity(
  limit: int = Query(default=100, ge=1, le=500),
  db: AsyncSession = Depends(get_db),
) -> ActivityListOut:
  return ActivityListOut(events=[_activity_out(e) for e in await service.list_activity(db, limit=limit)])
