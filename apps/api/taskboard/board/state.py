"""
Client-side board mirror.

``BoardState`` is a disposable prediction of the server's columns. ``BoardSync``
applies drag-and-drop moves to it optimistically, confirms them through the Task
API and falls back to a fresh listing whenever the server disagrees.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from taskboard.board.client import TaskApiClient, TaskApiError
from taskboard.logging_config import get_logger
from taskboard.schemas import TaskOut

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskCard:
  id: int
  title: str
  status: str
  position: int
  priority: str = "medium"
  assignee_name: str | None = None

  @classmethod
  def from_task(cls, t: TaskOut) -> "TaskCard":
    return cls(
      id=t.id,
      title=t.title,
      status=t.status,
      position=t.position,
      priority=t.priority,
      assignee_name=t.assignee_name,
    )


def _renumber(cards: Iterable[TaskCard]) -> tuple[TaskCard, ...]:
  return tuple(c if c.position == i else replace(c, position=i) for i, c in enumerate(cards))


@dataclass(frozen=True)
class BoardState:
  columns: Mapping[str, tuple[TaskCard, ...]] = field(default_factory=dict)

  @classmethod
  def from_tasks(cls, tasks: Iterable[TaskOut], columns: Sequence[str] = ()) -> "BoardState":
    grouped: dict[str, list[TaskCard]] = {c: [] for c in columns}
    for t in tasks:
      grouped.setdefault(t.status, []).append(TaskCard.from_task(t))
    return cls(columns={k: tuple(sorted(v, key=lambda c: c.position)) for k, v in grouped.items()})

  def column(self, status: str) -> tuple[TaskCard, ...]:
    return self.columns.get(status, ())

  def ids(self, status: str) -> list[int]:
    return [c.id for c in self.column(status)]

  def find(self, task_id: int) -> TaskCard | None:
    for cards in self.columns.values():
      for c in cards:
        if c.id == task_id:
          return c
    return None

  def apply_move(self, task_id: int, status: str, position: int | None = None) -> "BoardState":
    """Return the state after moving one card; ``position`` None appends, out-of-range clamps."""
    card = self.find(task_id)
    if card is None:
      raise KeyError(task_id)
    cols = {k: list(v) for k, v in self.columns.items()}
    cols[card.status] = [c for c in cols[card.status] if c.id != task_id]
    target = cols.setdefault(status, [])
    idx = len(target) if position is None else max(0, min(position, len(target)))
    target.insert(idx, replace(card, status=status))
    return BoardState(columns={k: _renumber(v) for k, v in cols.items()})

  def apply_delete(self, task_ids: Iterable[int]) -> "BoardState":
    gone = set(task_ids)
    return BoardState(columns={k: _renumber(c for c in v if c.id not in gone) for k, v in self.columns.items()})


class CardPhase(str, Enum):
  IDLE = "idle"
  DRAGGING = "dragging"
  DROPPED = "dropped"
  CONFIRMED = "confirmed"
  REVERTED = "reverted"


class BoardSync:
  def __init__(self, client: TaskApiClient, columns: Sequence[str] = ("todo", "inProgress", "done")) -> None:
    self.client = client
    self.column_keys = tuple(columns)
    self.state = BoardState.from_tasks([], self.column_keys)
    self.phases: dict[int, CardPhase] = {}
    self.last_error: str | None = None

  def phase(self, task_id: int) -> CardPhase:
    return self.phases.get(task_id, CardPhase.IDLE)

  async def refresh(self) -> BoardState:
    self.state = BoardState.from_tasks(await self.client.list_tasks(), self.column_keys)
    return self.state

  def start_drag(self, task_id: int) -> None:
    if self.state.find(task_id) is None:
      raise KeyError(task_id)
    self.phases[task_id] = CardPhase.DRAGGING

  def cancel_drag(self, task_id: int) -> None:
    self.phases[task_id] = CardPhase.IDLE

  async def _resync(self, fallback: BoardState) -> None:
    """Drop the optimistic state; keep ``fallback`` if the server cannot be reached either."""
    self.state = fallback
    try:
      await self.refresh()
    except TaskApiError as exc:
      logger.warning("Resync failed (%d): %s; keeping last confirmed board", exc.status_code, exc.message)

  async def drop(self, task_id: int, status: str, position: int | None = None) -> bool:
    """Apply the move locally, then confirm it with the server. Returns False if it was reverted."""
    card = self.state.find(task_id)
    if card is None:
      raise KeyError(task_id)
    before = self.state
    self.phases[task_id] = CardPhase.DROPPED
    self.state = self.state.apply_move(task_id, status, position)
    try:
      if card.status == status:
        await self.client.reorder_column(status, self.state.ids(status))
      else:
        await self.client.move_task(task_id, status, self.state.find(task_id).position)
    except TaskApiError as exc:
      self.last_error = exc.message
      self.phases[task_id] = CardPhase.REVERTED
      logger.warning("Move of task %d rejected (%d): %s; resyncing", task_id, exc.status_code, exc.message)
      await self._resync(before)
      return False
    self.last_error = None
    self.phases[task_id] = CardPhase.CONFIRMED
    return True

  async def delete(self, task_ids: Sequence[int]) -> bool:
    before = self.state
    self.state = self.state.apply_delete(task_ids)
    try:
      await self.client.delete_tasks(task_ids)
    except TaskApiError as exc:
      self.last_error = exc.message
      logger.warning("Delete of %d tasks rejected: %s; resyncing", len(task_ids), exc.message)
      await self._resync(before)
      return False
    for task_id in task_ids:
      self.phases.pop(task_id, None)
    return True
