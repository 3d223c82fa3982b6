from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from taskboard.schemas import TaskCreateIn, TaskOut, TaskSnapshotIn, UserOut


class TaskApiError(RuntimeError):
  def __init__(self, *, status_code: int, message: str) -> None:
    super().__init__(message)
    self.status_code = status_code
    self.message = message


def _extract_error(payload: Any) -> str:
  if isinstance(payload, dict):
    err = payload.get("error") or payload.get("detail")
    if isinstance(err, str) and err.strip():
      return err.strip()
  if isinstance(payload, str) and payload.strip():
    return payload.strip()[:500]
  return "Task API request failed"


async def _request_json(client: httpx.AsyncClient, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
  try:
    r = await client.request(method, path, **kwargs)
  except httpx.HTTPError as exc:
    raise TaskApiError(status_code=0, message=f"Task API unreachable ({exc.__class__.__name__})") from exc
  try:
    payload = r.json()
  except ValueError:
    payload = (r.text or "")[:800]
  if r.status_code >= 400 or not isinstance(payload, dict) or payload.get("success") is False:
    raise TaskApiError(status_code=r.status_code, message=_extract_error(payload))
  return payload


class TaskApiClient:
  """HTTP client for the Task API. Also usable as an assistant gateway against a remote board."""

  def __init__(self, client: httpx.AsyncClient) -> None:
    self.client = client

  @classmethod
  def connect(cls, base_url: str, *, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None) -> "TaskApiClient":
    return cls(httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport))

  async def aclose(self) -> None:
    await self.client.aclose()

  async def __aenter__(self) -> "TaskApiClient":
    return self

  async def __aexit__(self, *exc_info: Any) -> None:
    await self.aclose()

  async def list_tasks(self) -> list[TaskOut]:
    data = await _request_json(self.client, "GET", "/api/tasks")
    return [TaskOut.model_validate(t) for t in data.get("tasks", [])]

  async def get_task(self, task_id: int) -> TaskOut:
    data = await _request_json(self.client, "GET", f"/api/tasks/{task_id}")
    return TaskOut.model_validate(data["task"])

  async def list_users(self) -> list[UserOut]:
    data = await _request_json(self.client, "GET", "/api/users")
    return [UserOut.model_validate(u) for u in data.get("users", [])]

  async def create_tasks(self, items: Sequence[TaskCreateIn]) -> list[TaskOut]:
    body = [i.model_dump(exclude_none=True) for i in items]
    data = await _request_json(self.client, "POST", "/api/tasks", json=body)
    return [TaskOut.model_validate(t) for t in data.get("tasks", [])]

  async def move_task(self, task_id: int, status: str, position: int | None = None) -> TaskOut:
    body: dict[str, Any] = {"status": status}
    if position is not None:
      body["position"] = position
    data = await _request_json(self.client, "PUT", f"/api/tasks/{task_id}/status", json=body)
    return TaskOut.model_validate(data["task"])

  async def reorder_column(self, status: str, ordered_ids: Sequence[int]) -> None:
    positions = [{"id": task_id, "position": i} for i, task_id in enumerate(ordered_ids)]
    await _request_json(self.client, "PUT", "/api/tasks/positions", json={"status": status, "positions": positions})

  async def update_priority(self, task_id: int, priority: str) -> TaskOut:
    data = await _request_json(self.client, "PUT", f"/api/tasks/{task_id}/priority", json={"priority": priority})
    return TaskOut.model_validate(data["task"])

  async def update_content(self, task_id: int, *, title: str | None = None, description: str | None = None) -> TaskOut:
    body = {k: v for k, v in (("title", title), ("description", description)) if v is not None}
    data = await _request_json(self.client, "PUT", f"/api/tasks/{task_id}", json=body)
    return TaskOut.model_validate(data["task"])

  async def assign_task(self, task_id: int, user_id: int | None) -> TaskOut:
    data = await _request_json(self.client, "PUT", f"/api/tasks/{task_id}/assign", json={"assigneeId": user_id})
    return TaskOut.model_validate(data["task"])

  async def assign_tasks(self, task_ids: Sequence[int], user_id: int) -> list[TaskOut]:
    return [await self.assign_task(task_id, user_id) for task_id in task_ids]

  async def delete_task(self, task_id: int) -> TaskOut:
    data = await _request_json(self.client, "DELETE", f"/api/tasks/{task_id}")
    return TaskOut.model_validate(data["task"])

  async def delete_tasks(self, task_ids: Sequence[int]) -> list[TaskOut]:
    data = await _request_json(self.client, "POST", "/api/tasks/delete", json={"taskIds": list(task_ids)})
    return [TaskOut.model_validate(t) for t in data.get("tasks") or []]

  async def restore_tasks(self, snapshots: Sequence[TaskOut | TaskSnapshotIn]) -> list[TaskOut]:
    body = {"tasks": [s.model_dump(mode="json") for s in snapshots]}
    data = await _request_json(self.client, "POST", "/api/tasks/restore", json=body)
    return [TaskOut.model_validate(t) for t in data.get("tasks", [])]

  async def chat(self, message: str, *, image: dict[str, str] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message}
    if image:
      body["image"] = image
    return await _request_json(self.client, "POST", "/api/assistant/chat", json=body)
