from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.metrics import runtime_metrics
from taskboard.models import ActivityEvent


async def write_activity(
  db: AsyncSession,
  *,
  event_type: str,
  task_id: int | None = None,
  payload: dict[str, Any] | None = None,
) -> None:
  safe_payload = jsonable_encoder(payload or {})
  db.add(ActivityEvent(event_type=event_type, task_id=task_id, payload=safe_payload))
  runtime_metrics.count(event_type)
