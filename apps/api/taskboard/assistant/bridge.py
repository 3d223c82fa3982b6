"""
Natural-language board commands.

A chat message is routed to one intent (generate / assign / delete), sent to the
completion provider with that intent's instruction template, parsed, validated and
resolved against the current board. Only then are mutations replayed through the
gateway, so any failure along the way leaves the board untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from taskboard.ai.providers import AIProvider, ImageInput
from taskboard.assistant.errors import AssistantResolutionError, AssistantValidationError
from taskboard.assistant.gateway import TaskGateway
from taskboard.assistant.intents import (
  AssignIntent,
  DeleteIntent,
  GenerateIntent,
  IntentKind,
  Selection,
  classify_intent,
  validate_assign,
  validate_delete,
  validate_generate,
)
from taskboard.assistant.parsing import extract_json
from taskboard.assistant.prompts import SYSTEM_PROMPT, build_prompt
from taskboard.errors import UnknownStatusError
from taskboard.logging_config import get_logger
from taskboard.schemas import TaskCreateIn, TaskOut, UserOut
from taskboard.tasks.statuses import board_columns, canonical_status

logger = get_logger(__name__)


@dataclass
class AssistantReply:
  intent: IntentKind
  reply: str
  tasks: list[TaskOut] = field(default_factory=list)


def resolve_user(users: Sequence[UserOut], name: str) -> UserOut:
  """Case-insensitive exact name match, else the first name containing ``name``."""
  needle = " ".join(name.split()).lower()
  if not needle:
    raise AssistantResolutionError("No assignee name was given")
  for u in users:
    if u.name.lower() == needle:
      return u
  for u in users:
    if needle in u.name.lower():
      return u
  raise AssistantResolutionError(f'No team member matches "{name}"')


def _canonical(column: str) -> str:
  try:
    return canonical_status(column)
  except UnknownStatusError as exc:
    raise AssistantValidationError(f'Unknown column "{column}"') from exc


def select_tasks(tasks: Sequence[TaskOut], selection: Selection) -> list[TaskOut]:
  if selection.scope == "all":
    return list(tasks)
  if selection.scope == "column":
    status = _canonical(selection.column or "")
    return [t for t in tasks if t.status == status]
  if selection.scope == "titles":
    needles = [n.lower() for n in selection.titles or []]
    return [t for t in tasks if any(n in t.title.lower() for n in needles)]
  newest = sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)
  return newest[: selection.count or 0]


def _create_input(title: str, description: str, priority: str, minutes: int, status: str, assignee_id: int | None) -> TaskCreateIn:
  try:
    return TaskCreateIn(
      title=title,
      description=description,
      priority=priority,
      estimatedTime=minutes,
      status=status,
      assigneeId=assignee_id,
    )
  except ValidationError as exc:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    raise AssistantValidationError(f"Invalid task in response ({loc}: {err.get('msg', 'invalid value')})") from exc


def _titles(tasks: Sequence[TaskOut]) -> str:
  return "\n".join(f"- {t.title}" for t in tasks)


def _plural(n: int, word: str = "task") -> str:
  return f"{n} {word}" if n == 1 else f"{n} {word}s"


class AssistantBridge:
  def __init__(self, provider: AIProvider, gateway: TaskGateway) -> None:
    self.provider = provider
    self.gateway = gateway

  async def handle(self, message: str, *, image: ImageInput | None = None) -> AssistantReply:
    kind = classify_intent(message)
    current = await self.gateway.list_tasks()
    prompt = build_prompt(kind, message, columns=board_columns(), task_titles=[t.title for t in current])
    context: dict[str, Any] = {"kind": kind, "request": message, "hasImage": image is not None}
    raw = await self.provider.complete(system=SYSTEM_PROMPT, prompt=prompt, context=context, image=image)
    payload = extract_json(raw)
    logger.info("Assistant intent=%s provider=%s", kind, getattr(self.provider, "name", "?"))

    if kind == "assign":
      return await self._assign(validate_assign(payload), current)
    if kind == "delete":
      return await self._delete(validate_delete(payload), current)
    return await self._generate(validate_generate(payload))

  async def _generate(self, intent: GenerateIntent) -> AssistantReply:
    users: list[UserOut] | None = None
    items: list[TaskCreateIn] = []
    for t in intent.tasks:
      assignee_id = None
      if t.assigneeName and t.assigneeName.strip():
        if users is None:
          users = await self.gateway.list_users()
        assignee_id = resolve_user(users, t.assigneeName).id
      items.append(_create_input(t.title, t.description, t.priority, t.estimatedTime, _canonical(t.status), assignee_id))
    created = await self.gateway.create_tasks(items)
    reply = f"I've created {_plural(len(created))} based on your request:\n{_titles(created)}"
    return AssistantReply(intent="generate", reply=reply, tasks=created)

  async def _assign(self, intent: AssignIntent, current: Sequence[TaskOut]) -> AssistantReply:
    user = resolve_user(await self.gateway.list_users(), intent.assigneeName)
    matched = select_tasks(current, intent.selection)
    if not matched:
      raise AssistantResolutionError("No tasks matched your request")
    updated = await self.gateway.assign_tasks([t.id for t in matched], user.id)
    reply = f"Assigned {_plural(len(updated))} to {user.name}:\n{_titles(updated)}"
    return AssistantReply(intent="assign", reply=reply, tasks=updated)

  async def _delete(self, intent: DeleteIntent, current: Sequence[TaskOut]) -> AssistantReply:
    matched = select_tasks(current, intent.selection)
    if not matched:
      raise AssistantResolutionError("No tasks matched your request")
    deleted = await self.gateway.delete_tasks([t.id for t in matched])
    reply = f"Deleted {_plural(len(deleted))}:\n{_titles(deleted)}"
    return AssistantReply(intent="delete", reply=reply, tasks=deleted)
