from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.deps import get_db
from taskboard.schemas import (
  OkOut,
  TaskAssignIn,
  TaskBulkDeleteIn,
  TaskContentIn,
  TaskCreateIn,
  TaskDeleteOut,
  TaskEnvelopeOut,
  TaskListOut,
  TaskPositionsIn,
  TaskPriorityIn,
  TaskRestoreIn,
  TaskStatusIn,
)
from taskboard.tasks import service

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=TaskListOut)
async def list_tasks(db: AsyncSession = Depends(get_db)) -> TaskListOut:
  return TaskListOut(tasks=await service.list_tasks(db))


@router.post("", response_model=TaskListOut)
async def create_tasks(
  payload: TaskCreateIn | list[TaskCreateIn] = Body(...),
  db: AsyncSession = Depends(get_db),
) -> TaskListOut:
  items = payload if isinstance(payload, list) else [payload]
  created = await service.create_tasks(db, items)
  views = await service.views_for(db, [t.id for t in created])
  await db.commit()
  return TaskListOut(tasks=views)


# Declared before "/{task_id}" so the literal path is matched first.
@router.put("/positions", response_model=OkOut)
async def update_positions(payload: TaskPositionsIn, db: AsyncSession = Depends(get_db)) -> OkOut:
  arr = await service.reorder_column(db, payload.status, [(p.id, p.position) for p in payload.positions])
  await db.commit()
  return OkOut(message=f"{len(arr)} positions updated")


@router.post("/delete", response_model=TaskDeleteOut)
async def delete_tasks(payload: TaskBulkDeleteIn, db: AsyncSession = Depends(get_db)) -> TaskDeleteOut:
  deleted = await service.delete_tasks(db, payload.taskIds)
  await db.commit()
  return TaskDeleteOut(message=f"{len(deleted)} tasks deleted successfully", tasks=deleted)


@router.post("/restore", response_model=TaskListOut)
async def restore_tasks(payload: TaskRestoreIn, db: AsyncSession = Depends(get_db)) -> TaskListOut:
  restored = await service.restore_tasks(db, payload.tasks)
  views = await service.views_for(db, [t.id for t in restored])
  await db.commit()
  return TaskListOut(tasks=views)


@router.get("/{task_id}", response_model=TaskEnvelopeOut)
async def get_task(task_id: int, db: AsyncSession = Depends(get_db)) -> TaskEnvelopeOut:
  return TaskEnvelopeOut(task=await service.get_task_view(db, task_id))


@router.put("/{task_id}/status", response_model=TaskEnvelopeOut)
async def move_task(task_id: int, payload: TaskStatusIn, db: AsyncSession = Depends(get_db)) -> TaskEnvelopeOut:
  await service.move_task(db, task_id, payload.status, payload.position)
  view = await service.get_task_view(db, task_id)
  await db.commit()
  return TaskEnvelopeOut(task=view)


@router.put("/{task_id}/priority", response_model=TaskEnvelopeOut)
async def update_priority(task_id: int, payload: TaskPriorityIn, db: AsyncSession = Depends(get_db)) -> TaskEnvelopeOut:
  await service.update_priority(db, task_id, payload.priority)
  view = await service.get_task_view(db, task_id)
  await db.commit()
  return TaskEnvelopeOut(task=view)


@router.put("/{task_id}/assign", response_model=TaskEnvelopeOut)
async def assign_task(task_id: int, payload: TaskAssignIn, db: AsyncSession = Depends(get_db)) -> TaskEnvelopeOut:
  await service.assign_task(db, task_id, payload.assigneeId)
  view = await service.get_task_view(db, task_id)
  await db.commit()
  return TaskEnvelopeOut(task=view)


@router.put("/{task_id}", response_model=TaskEnvelopeOut)
async def update_task(task_id: int, payload: TaskContentIn, db: AsyncSession = Depends(get_db)) -> TaskEnvelopeOut:
  await service.update_content(db, task_id, title=payload.title, description=payload.description)
  view = await service.get_task_view(db, task_id)
  await db.commit()
  return TaskEnvelopeOut(task=view)


@router.delete("/{task_id}", response_model=TaskDeleteOut)
async def delete_task(task_id: int, db: AsyncSession = Depends(get_db)) -> TaskDeleteOut:
  deleted = await service.delete_task(db, task_id)
  await db.commit()
  return TaskDeleteOut(message="Task deleted successfully", task=deleted)
