from __future__ import annotations

from taskboard.config import settings
from taskboard.errors import UnknownStatusError

PRIORITIES: tuple[str, ...] = ("high", "medium", "low")

# Normalized alias -> canonical key. Normalization strips case, spaces, "-" and "_".
_ALIASES: dict[str, str] = {
  "todo": "todo",
  "backlog": "todo",
  "pending": "todo",
  "notstarted": "todo",
  "inprogress": "inProgress",
  "progress": "inProgress",
  "doing": "inProgress",
  "wip": "inProgress",
  "started": "inProgress",
  "ongoing": "inProgress",
  "done": "done",
  "complete": "done",
  "completed": "done",
  "finished": "done",
  "closed": "done",
}


def _norm(value: str) -> str:
  return "".join(ch for ch in value.strip().lower() if ch not in " -_")


def board_columns() -> list[str]:
  return settings.column_list()


def canonical_status(value: str | None) -> str:
  """Map a free-text column reference ("In Progress", "in_progress", "doing") to a status key."""
  if value is None or not str(value).strip():
    raise UnknownStatusError(str(value or ""))
  columns = board_columns()
  key = _norm(str(value))
  for col in columns:
    if _norm(col) == key:
      return col
  alias = _ALIASES.get(key)
  if alias and alias in columns:
    return alias
  raise UnknownStatusError(str(value))


def is_valid_priority(value: str | None) -> bool:
  return value in PRIORITIES
