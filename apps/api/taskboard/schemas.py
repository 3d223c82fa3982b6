from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class UserOut(BaseModel):
  id: int
  name: str
  email: str
  avatar_url: str | None = None


class TaskOut(BaseModel):
  id: int
  title: str
  description: str = ""
  priority: str
  estimated_time: int | None = None
  status: str
  position: int
  assignee_id: int | None = None
  assignee_name: str | None = None
  assignee_email: str | None = None
  assignee_avatar: str | None = None
  created_at: datetime
  updated_at: datetime


class TaskCreateIn(BaseModel):
  title: str = Field(min_length=1, max_length=200)
  description: str = Field(default="", max_length=5000)
  priority: Literal["high", "medium", "low"] = "medium"
  estimatedTime: int | None = Field(default=None, ge=1)
  status: str = "todo"
  assigneeId: int | None = None

  @field_validator("title")
  @classmethod
  def _strip_title(cls, v: str) -> str:
    v = v.strip()
    if not v:
      raise ValueError("title must not be blank")
    return v


class TaskStatusIn(BaseModel):
  status: str = Field(min_length=1)
  position: int | None = Field(default=None, ge=0)


class TaskPriorityIn(BaseModel):
  priority: str | None = None


class TaskAssignIn(BaseModel):
  assigneeId: int | None = None


class TaskContentIn(BaseModel):
  title: str | None = Field(default=None, min_length=1, max_length=200)
  description: str | None = Field(default=None, max_length=5000)

  @model_validator(mode="after")
  def _require_any(self) -> "TaskContentIn":
    if self.title is None and self.description is None:
      raise ValueError("title or description is required")
    return self


class TaskPositionIn(BaseModel):
  id: int
  position: int = Field(ge=0)


class TaskPositionsIn(BaseModel):
  status: str = Field(min_length=1)
  positions: list[TaskPositionIn]


class TaskBulkDeleteIn(BaseModel):
  taskIds: list[int] = Field(min_length=1)


class TaskSnapshotIn(BaseModel):
  model_config = ConfigDict(extra="ignore")

  title: str = Field(min_length=1)
  description: str = ""
  priority: Literal["high", "medium", "low"] = "medium"
  estimated_time: int | None = None
  status: str = "todo"
  position: int = Field(default=0, ge=0)
  assignee_id: int | None = None
  created_at: datetime | None = None


class TaskRestoreIn(BaseModel):
  tasks: list[TaskSnapshotIn] = Field(min_length=1)


class TaskListOut(BaseModel):
  success: bool = True
  tasks: list[TaskOut]


class TaskEnvelopeOut(BaseModel):
  success: bool = True
  task: TaskOut


class TaskDeleteOut(BaseModel):
  success: bool = True
  message: str
  task: TaskOut | None = None
  tasks: list[TaskOut] | None = None


class UserListOut(BaseModel):
  success: bool = True
  users: list[UserOut]


class OkOut(BaseModel):
  success: bool = True
  message: str | None = None


class ActivityOut(BaseModel):
  id: int
  eventType: str
  taskId: int | None = None
  payload: dict[str, Any] = Field(default_factory=dict)
  createdAt: datetime


class ActivityListOut(BaseModel):
  success: bool = True
  events: list[ActivityOut]


class AssistantImageIn(BaseModel):
  mediaType: Literal["image/png", "image/jpeg", "image/gif", "image/webp"] = "image/png"
  data: str = Field(min_length=1, description="Base64-encoded image bytes")


class AssistantChatIn(BaseModel):
  message: str = Field(min_length=1, max_length=4000)
  image: AssistantImageIn | None = None

  @field_validator("message")
  @classmethod
  def _strip_message(cls, v: str) -> str:
    v = v.strip()
    if not v:
      raise ValueError("message must not be blank")
    return v


class AssistantChatOut(BaseModel):
  success: bool = True
  intent: Literal["generate", "assign", "delete"]
  reply: str
  tasks: list[TaskOut] = Field(default_factory=list)


class MetricsOut(BaseModel):
  success: bool = True
  metrics: dict[str, Any]
