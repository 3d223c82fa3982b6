from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from httpx import AsyncClient

from conftest import column, create_tasks, titles, user_id
from taskboard.assistant.bridge import AssistantBridge, resolve_user, select_tasks
from taskboard.assistant.errors import (
  AssistantParseError,
  AssistantProviderError,
  AssistantResolutionError,
  AssistantValidationError,
)
from taskboard.assistant.intents import Selection
from taskboard.deps import get_provider
from taskboard.main import app
from taskboard.schemas import TaskCreateIn, TaskOut, UserOut

_T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class ScriptedProvider:
  name = "scripted"

  def __init__(self, reply: str | Exception) -> None:
    self.reply = reply
    self.calls: list[dict[str, Any]] = []

  async def complete(self, *, system: str, prompt: str, context: dict[str, Any], image=None) -> str:
    self.calls.append({"system": system, "prompt": prompt, "context": context, "image": image})
    if isinstance(self.reply, Exception):
      raise self.reply
    return self.reply


class MemoryGateway:
  def __init__(self, tasks: list[TaskOut], users: list[UserOut]) -> None:
    self.tasks = tasks
    self.users = users
    self.mutations: list[tuple[str, Any]] = []

  async def list_tasks(self) -> list[TaskOut]:
    return list(self.tasks)

  async def list_users(self) -> list[UserOut]:
    return list(self.users)

  async def create_tasks(self, items: list[TaskCreateIn]) -> list[TaskOut]:
    self.mutations.append(("create", items))
    out = []
    for n, item in enumerate(items, start=len(self.tasks) + 1):
      out.append(_task(n, item.title, item.status, assignee_id=item.assigneeId))
    self.tasks.extend(out)
    return out

  async def assign_tasks(self, task_ids, user_id: int) -> list[TaskOut]:
    self.mutations.append(("assign", (list(task_ids), user_id)))
    return [t.model_copy(update={"assignee_id": user_id}) for t in self.tasks if t.id in task_ids]

  async def delete_tasks(self, task_ids) -> list[TaskOut]:
    self.mutations.append(("delete", list(task_ids)))
    gone = [t for t in self.tasks if t.id in task_ids]
    self.tasks = [t for t in self.tasks if t.id not in task_ids]
    return gone


def _task(task_id: int, title: str, status: str = "todo", position: int = 0, **extra) -> TaskOut:
  ts = _T0 + timedelta(minutes=task_id)
  return TaskOut(id=task_id, title=title, priority="medium", status=status, position=position, created_at=ts, updated_at=ts, **extra)


USERS = [
  UserOut(id=1, name="Jane Doe", email="jane@example.com"),
  UserOut(id=2, name="John Smith", email="john@example.com"),
]


def _board() -> list[TaskOut]:
  return [
    _task(1, "Write launch blog post"),
    _task(2, "Fix login bug", "inProgress", 0),
    _task(3, "Review login copy", "inProgress", 1),
    _task(4, "Ship v1", "done"),
  ]


def test_resolve_user_exact_then_substring() -> None:
  assert resolve_user(USERS, "jane doe").id == 1
  assert resolve_user(USERS, "  JOHN ").id == 2
  with pytest.raises(AssistantResolutionError):
    resolve_user(USERS, "Priya")
  with pytest.raises(AssistantResolutionError):
    resolve_user(USERS, "   ")


def test_select_tasks_scopes() -> None:
  tasks = _board()
  assert [t.id for t in select_tasks(tasks, Selection(scope="all"))] == [1, 2, 3, 4]
  assert [t.id for t in select_tasks(tasks, Selection(scope="column", column="In Progress"))] == [2, 3]
  assert [t.id for t in select_tasks(tasks, Selection(scope="titles", titles=["LOGIN"]))] == [2, 3]
  assert [t.id for t in select_tasks(tasks, Selection(scope="last", count=2))] == [4, 3]
  with pytest.raises(AssistantValidationError):
    select_tasks(tasks, Selection(scope="column", column="archive"))


@pytest.mark.anyio
async def test_assign_column_to_named_user() -> None:
  provider = ScriptedProvider(json.dumps({"assigneeName": "Jane Doe", "selection": {"scope": "column", "column": "inProgress"}}))
  gateway = MemoryGateway(_board(), USERS)

  result = await AssistantBridge(provider, gateway).handle("assign all tasks in progress to Jane Doe")

  assert result.intent == "assign"
  assert gateway.mutations == [("assign", ([2, 3], 1))]
  assert result.reply.startswith("Assigned 2 tasks to Jane Doe:")
  assert "- Fix login bug" in result.reply
  assert provider.calls[0]["context"]["kind"] == "assign"
  assert "Request: assign all tasks in progress to Jane Doe" in provider.calls[0]["prompt"]


@pytest.mark.anyio
async def test_unmatched_assignee_mutates_nothing() -> None:
  provider = ScriptedProvider(json.dumps({"assigneeName": "Priya Patel", "selection": {"scope": "all"}}))
  gateway = MemoryGateway(_board(), USERS)

  with pytest.raises(AssistantResolutionError) as exc:
    await AssistantBridge(provider, gateway).handle("assign everything to Priya Patel")

  assert "Priya Patel" in exc.value.message
  assert gateway.mutations == []


@pytest.mark.anyio
async def test_generate_resolves_assignees_before_creating() -> None:
  payload = [
    {"title": "Draft", "description": "d", "priority": "high", "estimatedTime": 20, "status": "todo", "assigneeName": "john"},
    {"title": "Publish", "description": "p", "priority": "low", "estimatedTime": 5, "status": "in progress"},
  ]
  gateway = MemoryGateway(_board(), USERS)
  result = await AssistantBridge(ScriptedProvider("```json\n" + json.dumps(payload) + "\n```"), gateway).handle("create tasks for the newsletter")

  assert result.intent == "generate"
  [(kind, items)] = gateway.mutations
  assert kind == "create"
  assert [(i.title, i.status, i.assigneeId) for i in items] == [("Draft", "todo", 2), ("Publish", "inProgress", None)]
  assert result.reply == "I've created 2 tasks based on your request:\n- Draft\n- Publish"


@pytest.mark.anyio
@pytest.mark.parametrize(
  "reply,error",
  [
    ("I cannot help with that.", AssistantParseError),
    (json.dumps([{"title": "X", "description": "d", "priority": "critical", "estimatedTime": 5, "status": "todo"}]), AssistantValidationError),
    (json.dumps([{"title": "X", "description": "d", "priority": "low", "estimatedTime": 5, "status": "archive"}]), AssistantValidationError),
    (json.dumps([{"title": "   ", "description": "d", "priority": "low", "estimatedTime": 5, "status": "todo"}]), AssistantValidationError),
    (json.dumps([{"title": "X" * 201, "description": "d", "priority": "low", "estimatedTime": 5, "status": "todo"}]), AssistantValidationError),
    (json.dumps([{"title": "X", "description": "d", "priority": "low", "estimatedTime": 5, "status": "todo", "assigneeName": "Nobody"}]), AssistantResolutionError),
    (AssistantProviderError("Claude service error. Please try again later. (Status: 500)", upstream_status=500), AssistantProviderError),
  ],
)
async def test_generate_failures_leave_board_untouched(reply, error) -> None:
  gateway = MemoryGateway(_board(), USERS)
  with pytest.raises(error):
    await AssistantBridge(ScriptedProvider(reply), gateway).handle("create a task for X")
  assert gateway.mutations == []


@pytest.mark.anyio
async def test_delete_last_n_and_no_match() -> None:
  gateway = MemoryGateway(_board(), USERS)
  result = await AssistantBridge(ScriptedProvider('{"selection": {"scope": "last", "count": 2}}'), gateway).handle("delete the last 2 tasks")
  assert result.intent == "delete"
  assert gateway.mutations == [("delete", [4, 3])]
  assert result.reply.startswith("Deleted 2 tasks:")

  gateway = MemoryGateway(_board(), USERS)
  with pytest.raises(AssistantResolutionError):
    await AssistantBridge(ScriptedProvider('{"selection": {"scope": "titles", "titles": ["deploy"]}}'), gateway).handle("delete the deploy task")
  assert gateway.mutations == []


@pytest.mark.anyio
async def test_chat_endpoint_with_local_provider(client: AsyncClient) -> None:
  res = await client.post("/api/assistant/chat", json={"message": "Create tasks: write release notes, update changelog"})
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["success"] is True
  assert body["intent"] == "generate"
  assert titles(body["tasks"]) == ["Write release notes", "Update changelog"]
  assert [t["position"] for t in await column(client, "todo")] == [0, 1]


@pytest.mark.anyio
async def test_chat_assigns_in_progress_column(client: AsyncClient) -> None:
  await create_tasks(client, "Backlog item")
  await create_tasks(client, "Fix login", "Polish UI", status="inProgress")
  jane = await user_id("Jane Doe")

  res = await client.post("/api/assistant/chat", json={"message": "assign all tasks in progress to Jane Doe"})
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["intent"] == "assign"
  assert "Jane Doe" in body["reply"]

  assert {t["assignee_id"] for t in await column(client, "inProgress")} == {jane}
  assert [t["assignee_id"] for t in await column(client, "todo")] == [None]


@pytest.mark.anyio
async def test_chat_unknown_assignee_returns_error_and_mutates_nothing(client: AsyncClient) -> None:
  await create_tasks(client, "Fix login", status="inProgress")

  res = await client.post("/api/assistant/chat", json={"message": "assign all tasks in progress to Priya Patel"})
  assert res.status_code == 422, res.text
  body = res.json()
  assert body["success"] is False
  assert "Priya Patel" in body["error"]
  assert body["reply"].startswith("Error: ")
  assert [t["assignee_id"] for t in await column(client, "inProgress")] == [None]


@pytest.mark.anyio
async def test_chat_deletes_named_column(client: AsyncClient) -> None:
  await create_tasks(client, "Keep me")
  await create_tasks(client, "Old 1", "Old 2", status="done")

  res = await client.post("/api/assistant/chat", json={"message": "delete all tasks in done"})
  assert res.status_code == 200, res.text
  assert sorted(titles(res.json()["tasks"])) == ["Old 1", "Old 2"]
  assert await column(client, "done") == []
  assert titles(await column(client, "todo")) == ["Keep me"]


@pytest.mark.anyio
async def test_chat_provider_failure_is_502(client: AsyncClient) -> None:
  provider = ScriptedProvider(AssistantProviderError("OpenAI API rate limit exceeded. Please try again later. (Status: 429)", upstream_status=429))
  app.dependency_overrides[get_provider] = lambda: provider

  res = await client.post(
    "/api/assistant/chat",
    json={"message": "create a task from this screenshot", "image": {"mediaType": "image/png", "data": "iVBORw0KGgo="}},
  )
  assert res.status_code == 502, res.text
  assert "rate limit" in res.json()["error"]
  assert provider.calls[0]["image"].media_type == "image/png"
  assert provider.calls[0]["context"]["hasImage"] is True
  assert await column(client, "todo") == []


@pytest.mark.anyio
async def test_chat_rejects_blank_message(client: AsyncClient) -> None:
  res = await client.post("/api/assistant/chat", json={"message": "   "})
  assert res.status_code == 400, res.text
  assert res.json()["success"] is False


@pytest.mark.anyio
async def test_chat_assigns_quoted_title_containing_delete_word(client: AsyncClient) -> None:
  await create_tasks(client, "Remove logo", "Other")
  jane = await user_id("Jane Doe")

  res = await client.post("/api/assistant/chat", json={"message": "assign 'Remove logo' to Jane Doe"})
  assert res.status_code == 200, res.text
  assert res.json()["intent"] == "assign"

  todo = await column(client, "todo")
  assert titles(todo) == ["Remove logo", "Other"]
  assert [t["assignee_id"] for t in todo] == [jane, None]


@pytest.mark.anyio
async def test_chat_blank_generated_title_is_422(client: AsyncClient) -> None:
  reply = json.dumps([{"title": "  ", "description": "d", "priority": "low", "estimatedTime": 5, "status": "todo"}])
  app.dependency_overrides[get_provider] = lambda: ScriptedProvider(reply)

  res = await client.post("/api/assistant/chat", json={"message": "create a task for the launch"})
  assert res.status_code == 422, res.text
  body = res.json()
  assert body["success"] is False
  assert "title" in body["error"]
  assert body["reply"].startswith("Error: ")
  assert await column(client, "todo") == []
