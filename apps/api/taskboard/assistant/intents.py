from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from taskboard.assistant.errors import AssistantValidationError

IntentKind = Literal["generate", "assign", "delete"]

_GENERATE_VERBS = ("create", "add", "make", "generate", "plan", "new task", "new tasks", "write up", "break down")
_ASSIGN_KEYWORDS = (
  "assign",
  "give",
  "set assignee",
  "delegate",
  "give to",
  "should be done by",
  "is responsible for",
  "hand over",
  "reassign",
)
_DELETE_KEYWORDS = ("delete", "remove", "clear out", "get rid of", "drop", "erase")


def _keyword_re(words: tuple[str, ...]) -> re.Pattern[str]:
  return re.compile(r"\b(" + "|".join(re.escape(w) for w in words) + r")\b")


_LEADING = r"^(?:please\s+)?(?:{})\b"
_GENERATE_RE = re.compile(_LEADING.format("|".join(re.escape(v) for v in _GENERATE_VERBS)))
_ASSIGN_LEAD_RE = re.compile(_LEADING.format("|".join(re.escape(v) for v in _ASSIGN_KEYWORDS)))
_DELETE_LEAD_RE = re.compile(_LEADING.format("|".join(re.escape(v) for v in _DELETE_KEYWORDS)))
_ASSIGN_RE = _keyword_re(_ASSIGN_KEYWORDS)
_DELETE_RE = _keyword_re(_DELETE_KEYWORDS)
_QUOTED_RE = re.compile(r'"[^"]*"|(?<!\w)\'[^\']*\'(?!\w)')


def classify_intent(text: str) -> IntentKind:
  """
  Keyword routing. Quoted task titles are ignored; the leading verb decides when
  there is one, otherwise assignment phrasing wins over deletion and generation is
  the default.
  """
  low = _QUOTED_RE.sub(" ", text.strip().lower()).strip()
  if _GENERATE_RE.search(low):
    return "generate"
  if _ASSIGN_LEAD_RE.search(low):
    return "assign"
  if _DELETE_LEAD_RE.search(low):
    return "delete"
  if _ASSIGN_RE.search(low):
    return "assign"
  if _DELETE_RE.search(low):
    return "delete"
  return "generate"


class GeneratedTask(BaseModel):
  model_config = ConfigDict(extra="ignore")

  title: str = Field(min_length=1, max_length=200)
  description: str = Field(min_length=1, max_length=5000)
  priority: Literal["high", "medium", "low"]
  estimatedTime: int = Field(gt=0)
  status: str = Field(min_length=1)
  assigneeName: str | None = None

  @field_validator("title", "description", "status")
  @classmethod
  def _not_blank(cls, v: str) -> str:
    v = v.strip()
    if not v:
      raise ValueError("must not be blank")
    return v

  @field_validator("priority", mode="before")
  @classmethod
  def _lower_priority(cls, v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v

  @field_validator("estimatedTime", mode="before")
  @classmethod
  def _reject_bool(cls, v: Any) -> Any:
    if isinstance(v, bool):
      raise ValueError("estimatedTime must be a number of minutes")
    return v


class GenerateIntent(BaseModel):
  tasks: list[GeneratedTask] = Field(min_length=1)


class Selection(BaseModel):
  model_config = ConfigDict(extra="ignore")

  scope: Literal["all", "column", "titles", "last"]
  column: str | None = None
  titles: list[str] | None = None
  count: int | None = Field(default=None, gt=0)

  @model_validator(mode="after")
  def _scope_fields(self) -> "Selection":
    if self.scope == "column" and not (self.column or "").strip():
      raise ValueError("selection.column is required when scope is 'column'")
    if self.scope == "titles":
      titles = [t.strip() for t in (self.titles or []) if t and t.strip()]
      if not titles:
        raise ValueError("selection.titles is required when scope is 'titles'")
      self.titles = titles
    if self.scope == "last" and self.count is None:
      raise ValueError("selection.count is required when scope is 'last'")
    return self


class AssignIntent(BaseModel):
  model_config = ConfigDict(extra="ignore")

  assigneeName: str = Field(min_length=1)
  selection: Selection

  @model_validator(mode="after")
  def _no_last(self) -> "AssignIntent":
    if self.selection.scope == "last":
      raise ValueError("'last N' selection is only supported for deletions")
    return self


class DeleteIntent(BaseModel):
  model_config = ConfigDict(extra="ignore")

  selection: Selection


def _first_error(exc: ValidationError) -> str:
  err = exc.errors()[0]
  loc = ".".join(str(p) for p in err.get("loc", ()))
  msg = err.get("msg", "invalid value")
  return f"{loc}: {msg}" if loc else msg


def validate_generate(payload: Any) -> GenerateIntent:
  if isinstance(payload, dict) and "tasks" in payload:
    payload = payload["tasks"]
  if not isinstance(payload, list):
    raise AssistantValidationError("Invalid response format: expected a JSON array of tasks")
  try:
    return GenerateIntent(tasks=payload)
  except ValidationError as exc:
    raise AssistantValidationError(f"Invalid task in response ({_first_error(exc)})") from exc


def validate_assign(payload: Any) -> AssignIntent:
  if not isinstance(payload, dict):
    raise AssistantValidationError("Invalid response format: expected a JSON object")
  try:
    return AssignIntent.model_validate(payload)
  except ValidationError as exc:
    raise AssistantValidationError(f"Invalid assignment in response ({_first_error(exc)})") from exc


def validate_delete(payload: Any) -> DeleteIntent:
  if not isinstance(payload, dict):
    raise AssistantValidationError("Invalid response format: expected a JSON object")
  try:
    return DeleteIntent.model_validate(payload)
  except ValidationError as exc:
    raise AssistantValidationError(f"Invalid deletion in response ({_first_error(exc)})") from exc
