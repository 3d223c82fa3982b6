from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.schemas import TaskCreateIn, TaskOut, UserOut
from taskboard.tasks import service


class TaskGateway(Protocol):
  """The board operations the assistant is allowed to replay."""

  async def list_tasks(self) -> list[TaskOut]: ...

  async def list_users(self) -> list[UserOut]: ...

  async def create_tasks(self, items: Sequence[TaskCreateIn]) -> list[TaskOut]: ...

  async def assign_tasks(self, task_ids: Sequence[int], user_id: int) -> list[TaskOut]: ...

  async def delete_tasks(self, task_ids: Sequence[int]) -> list[TaskOut]: ...


class StoreGateway:
  """Runs assistant mutations in-process, inside the caller's transaction."""

  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def list_tasks(self) -> list[TaskOut]:
    return await service.list_tasks(self.db)

  async def list_users(self) -> list[UserOut]:
    return [service.user_out(u) for u in await service.list_users(self.db)]

  async def create_tasks(self, items: Sequence[TaskCreateIn]) -> list[TaskOut]:
    created = await service.create_tasks(self.db, items)
    return await service.views_for(self.db, [t.id for t in created])

  async def assign_tasks(self, task_ids: Sequence[int], user_id: int) -> list[TaskOut]:
    for task_id in task_ids:
      await service.assign_task(self.db, task_id, user_id)
    return await service.views_for(self.db, list(task_ids))

  async def delete_tasks(self, task_ids: Sequence[int]) -> list[TaskOut]:
    return await service.delete_tasks(self.db, task_ids)
