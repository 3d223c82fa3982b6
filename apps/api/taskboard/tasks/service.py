"""
Task store operations.

Every function takes the request's ``AsyncSession`` and only flushes; the caller
owns the transaction and commits once, so a failure anywhere leaves neither rows
nor positions half-written. Column reads that feed a reindex lock the rows they
return (``FOR UPDATE`` on PostgreSQL) so concurrent writers on the same column
serialize on the database rather than in process.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.activity import write_activity
from taskboard.errors import TaskNotFoundError, UserNotFoundError, ValidationFailed
from taskboard.logging_config import get_logger
from taskboard.models import ActivityEvent, Task, User
from taskboard.schemas import TaskCreateIn, TaskOut, TaskSnapshotIn, UserOut
from taskboard.tasks.positions import compact_after_delete, insert_at, resequence
from taskboard.tasks.statuses import PRIORITIES, canonical_status, is_valid_priority

logger = get_logger(__name__)


def _view_query():
  return select(Task, User.name, User.email, User.avatar_url).outerjoin(User, User.id == Task.assignee_id)


def task_out(t: Task, assignee_name: str | None = None, assignee_email: str | None = None, assignee_avatar: str | None = None) -> TaskOut:
  return TaskOut(
    id=t.id,
    title=t.title,
    description=t.description or "",
    priority=t.priority,
    estimated_time=t.estimated_time,
    status=t.status,
    position=t.position,
    assignee_id=t.assignee_id,
    assignee_name=assignee_name,
    assignee_email=assignee_email,
    assignee_avatar=assignee_avatar,
    created_at=t.created_at,
    updated_at=t.updated_at,
  )


def user_out(u: User) -> UserOut:
  return UserOut(id=u.id, name=u.name, email=u.email, avatar_url=u.avatar_url)


async def list_tasks(db: AsyncSession) -> list[TaskOut]:
  res = await db.execute(_view_query().order_by(Task.status.asc(), Task.position.asc(), Task.created_at.desc()))
  return [task_out(*row) for row in res.all()]


async def views_for(db: AsyncSession, task_ids: Sequence[int]) -> list[TaskOut]:
  """Joined views for ``task_ids``, returned in the order given."""
  if not task_ids:
    return []
  res = await db.execute(_view_query().where(Task.id.in_(list(task_ids))))
  by_id = {row[0].id: task_out(*row) for row in res.all()}
  return [by_id[i] for i in task_ids if i in by_id]


async def get_task_view(db: AsyncSession, task_id: int) -> TaskOut:
  res = await db.execute(_view_query().where(Task.id == task_id))
  row = res.one_or_none()
  if row is None:
    raise TaskNotFoundError(task_id)
  return task_out(*row)


async def _get_task(db: AsyncSession, task_id: int, *, for_update: bool = False) -> Task:
  q = select(Task).where(Task.id == task_id)
  if for_update:
    q = q.with_for_update()
  res = await db.execute(q)
  t = res.scalar_one_or_none()
  if not t:
    raise TaskNotFoundError(task_id)
  return t


async def _column(db: AsyncSession, status: str) -> list[Task]:
  res = await db.execute(
    select(Task)
    .where(Task.status == status)
    .order_by(Task.position.asc(), Task.created_at.asc(), Task.id.asc())
    .with_for_update()
  )
  return list(res.scalars().all())


async def _ensure_users(db: AsyncSession, user_ids: set[int]) -> None:
  if not user_ids:
    return
  res = await db.execute(select(User.id).where(User.id.in_(user_ids)))
  found = set(res.scalars().all())
  missing = sorted(user_ids - found)
  if missing:
    raise UserNotFoundError(missing[0], message=f"User not found: {missing[0]}")


async def create_tasks(db: AsyncSession, items: Sequence[TaskCreateIn]) -> list[Task]:
  """Append each task to the end of its column, in input order."""
  if not items:
    raise ValidationFailed("At least one task is required")
  statuses = [canonical_status(item.status) for item in items]
  await _ensure_users(db, {item.assigneeId for item in items if item.assigneeId is not None})

  lengths: dict[str, int] = {}
  for status in dict.fromkeys(statuses):
    lengths[status] = len(await _column(db, status))

  created: list[Task] = []
  for item, status in zip(items, statuses):
    t = Task(
      title=item.title,
      description=item.description or "",
      priority=item.priority,
      estimated_time=item.estimatedTime,
      status=status,
      position=lengths[status],
      assignee_id=item.assigneeId,
    )
    lengths[status] += 1
    db.add(t)
    created.append(t)
  await db.flush()

  for t in created:
    await write_activity(db, event_type="task.created", task_id=t.id, payload={"title": t.title, "status": t.status, "position": t.position})
  logger.info("Created %d task(s): %s", len(created), ", ".join(f"{t.id}@{t.status}[{t.position}]" for t in created))
  return created


async def move_task(db: AsyncSession, task_id: int, target_status: str, target_position: int | None = None) -> Task:
  """
  Move a task within or across columns.

  ``target_position`` defaults to the end of the destination column and is clamped
  to its bounds. Moving a task onto its own slot changes nothing.
  """
  t = await _get_task(db, task_id, for_update=True)
  status = canonical_status(target_status)
  source = t.status
  from_idx = t.position

  if status == source:
    arr = [x for x in await _column(db, source) if x.id != t.id]
    to_idx = insert_at(arr, t, target_position)
    changed = resequence(arr)
  else:
    from_arr = [x for x in await _column(db, source) if x.id != t.id]
    to_arr = await _column(db, status)
    t.status = status
    to_idx = insert_at(to_arr, t, target_position)
    changed = resequence(from_arr) + resequence(to_arr) + 1

  if not changed:
    return t

  await db.flush()
  await write_activity(
    db,
    event_type="task.moved",
    task_id=t.id,
    payload={"fromStatus": source, "fromPosition": from_idx, "toStatus": status, "toPosition": to_idx},
  )
  logger.info("Moved task %s %s[%s] -> %s[%s]", t.id, source, from_idx, status, to_idx)
  return t


async def reorder_column(db: AsyncSession, status: str, positions: Sequence[tuple[int, int]]) -> list[Task]:
  """
  Renumber a whole column from a client-supplied ordering of ``(task_id, position)``.

  The submitted ids must be exactly the column's current members; they are ordered
  by submitted position (ties keep submission order) and renumbered ``0..n-1``.
  """
  status = canonical_status(status)
  column = await _column(db, status)
  by_id = {t.id: t for t in column}

  submitted = [task_id for task_id, _ in positions]
  if len(set(submitted)) != len(submitted):
    raise ValidationFailed("positions contains duplicate task ids")

  foreign = [i for i in submitted if i not in by_id]
  if foreign:
    res = await db.execute(select(Task.id).where(Task.id.in_(foreign)))
    existing = set(res.scalars().all())
    missing = [i for i in foreign if i not in existing]
    if missing:
      raise TaskNotFoundError(missing[0], message=f"Task not found: {missing[0]}")
    raise ValidationFailed(f"Task {foreign[0]} is not in column {status}")
  if set(submitted) != set(by_id):
    raise ValidationFailed("positions must include every task in the column")

  ordered = sorted(enumerate(positions), key=lambda pair: (pair[1][1], pair[0]))
  arr = [by_id[task_id] for _, (task_id, _) in ordered]
  changed = resequence(arr)
  if changed:
    await db.flush()
    await write_activity(db, event_type="column.reordered", payload={"status": status, "taskIds": [t.id for t in arr]})
    logger.info("Reordered column %s (%d of %d changed)", status, changed, len(arr))
  return arr


async def update_priority(db: AsyncSession, task_id: int, priority: str | None) -> Task:
  if not is_valid_priority(priority):
    raise ValidationFailed(f"Invalid priority value (expected one of: {', '.join(PRIORITIES)})")
  t = await _get_task(db, task_id)
  if t.priority != priority:
    old = t.priority
    t.priority = priority
    await db.flush()
    await write_activity(db, event_type="task.priority_changed", task_id=t.id, payload={"from": old, "to": priority})
  return t


async def update_content(db: AsyncSession, task_id: int, *, title: str | None = None, description: str | None = None) -> Task:
  t = await _get_task(db, task_id)
  changed: list[str] = []
  if title is not None:
    title = title.strip()
    if not title:
      raise ValidationFailed("title must not be blank")
    if title != t.title:
      t.title = title
      changed.append("title")
  if description is not None and description != t.description:
    t.description = description
    changed.append("description")
  if changed:
    await db.flush()
    await write_activity(db, event_type="task.updated", task_id=t.id, payload={"changed": changed})
  return t


async def assign_task(db: AsyncSession, task_id: int, user_id: int | None) -> Task:
  """Set or clear the assignee. Unknown user ids are rejected; position is untouched."""
  t = await _get_task(db, task_id)
  if user_id is not None:
    await _ensure_users(db, {user_id})
  if t.assignee_id != user_id:
    old = t.assignee_id
    t.assignee_id = user_id
    await db.flush()
    await write_activity(db, event_type="task.assigned", task_id=t.id, payload={"from": old, "to": user_id})
    logger.info("Assigned task %s to user %s", t.id, user_id)
  return t


async def delete_tasks(db: AsyncSession, task_ids: Sequence[int]) -> list[TaskOut]:
  """
  Delete the given tasks and close the gaps they leave in each column.

  Ids that do not exist are ignored. Returns snapshots of the deleted rows (with
  assignee info) suitable for ``restore_tasks``.
  """
  ids = list(dict.fromkeys(task_ids))
  if not ids:
    return []
  res = await db.execute(select(Task).where(Task.id.in_(ids)).with_for_update())
  doomed = list(res.scalars().all())
  if not doomed:
    return []

  snapshots = await views_for(db, [t.id for t in doomed])
  vacated: dict[str, list[int]] = defaultdict(list)
  for t in doomed:
    vacated[t.status].append(t.position)
    await db.delete(t)
  await db.flush()

  for status, gone in vacated.items():
    remaining = await _column(db, status)
    compact_after_delete(remaining, gone)
  await db.flush()

  for snap in snapshots:
    await write_activity(db, event_type="task.deleted", task_id=snap.id, payload={"title": snap.title, "status": snap.status, "position": snap.position})
  logger.info("Deleted %d task(s): %s", len(snapshots), ", ".join(str(s.id) for s in snapshots))
  return snapshots


async def delete_task(db: AsyncSession, task_id: int) -> TaskOut:
  deleted = await delete_tasks(db, [task_id])
  if not deleted:
    raise TaskNotFoundError(task_id)
  return deleted[0]


async def restore_tasks(db: AsyncSession, snapshots: Sequence[TaskSnapshotIn]) -> list[Task]:
  """
  Re-insert previously deleted tasks at their former slot (clamped to the column
  length), shifting later tasks down. Restored rows get fresh ids.
  """
  if not snapshots:
    raise ValidationFailed("At least one task is required")
  statuses = [canonical_status(s.status) for s in snapshots]
  await _ensure_users(db, {s.assignee_id for s in snapshots if s.assignee_id is not None})

  order = sorted(range(len(snapshots)), key=lambda i: (statuses[i], snapshots[i].position, i))
  restored: dict[int, Task] = {}
  for i in order:
    snap = snapshots[i]
    column = await _column(db, statuses[i])
    t = Task(
      title=snap.title,
      description=snap.description or "",
      priority=snap.priority,
      estimated_time=snap.estimated_time,
      status=statuses[i],
      position=0,
      assignee_id=snap.assignee_id,
    )
    if snap.created_at is not None:
      t.created_at = snap.created_at
    insert_at(column, t, snap.position)
    resequence(column)
    db.add(t)
    await db.flush()
    restored[i] = t

  out = [restored[i] for i in range(len(snapshots))]
  for t in out:
    await write_activity(db, event_type="task.restored", task_id=t.id, payload={"title": t.title, "status": t.status, "position": t.position})
  logger.info("Restored %d task(s)", len(out))
  return out


async def list_users(db: AsyncSession) -> list[User]:
  res = await db.execute(select(User).order_by(User.name.asc(), User.id.asc()))
  return list(res.scalars().all())


async def find_users_by_name(db: AsyncSession, name: str) -> list[User]:
  """Case-insensitive substring search, exact matches first."""
  needle = " ".join(name.split()).lower()
  if not needle:
    return []
  res = await db.execute(
    select(User).where(func.lower(User.name).contains(needle, autoescape=True)).order_by(User.name.asc(), User.id.asc())
  )
  users = list(res.scalars().all())
  return sorted(users, key=lambda u: u.name.lower() != needle)


async def list_activity(db: AsyncSession, *, limit: int = 100) -> list[ActivityEvent]:
  res = await db.execute(select(ActivityEvent).order_by(ActivityEvent.id.desc()).limit(limit))
  return list(res.scalars().all())
