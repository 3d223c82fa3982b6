from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from taskboard.assistant.errors import AssistantProviderError
from taskboard.config import settings


@dataclass(frozen=True)
class ImageInput:
  media_type: str
  data: str  # base64, no data-URL prefix

  def data_url(self) -> str:
    return f"data:{self.media_type};base64,{self.data}"


class AIProvider(Protocol):
  name: str

  async def complete(self, *, system: str, prompt: str, context: dict[str, Any], image: ImageInput | None = None) -> str: ...


def _status_messages(label: str) -> dict[int | str, str]:
  return {
    400: f"Invalid request to {label} API. Please check your input.",
    401: f"Invalid {label} API key. Please check your credentials.",
    403: f"{label} API access forbidden. Please check your subscription.",
    404: f"{label} API endpoint not found.",
    429: f"{label} API rate limit exceeded. Please try again later.",
    500: f"{label} service error. Please try again later.",
    502: f"{label} service is temporarily unavailable.",
    503: f"{label} service is temporarily unavailable.",
    "default": f"An error occurred while connecting to {label}.",
  }


async def _post_json(*, label: str, url: str, headers: dict[str, str], body: dict[str, Any]) -> dict[str, Any]:
  try:
    async with httpx.AsyncClient(headers=headers, timeout=settings.ai_timeout_seconds) as client:
      r = await client.post(url, json=body)
  except httpx.HTTPError as exc:
    raise AssistantProviderError(f"{_status_messages(label)['default']} ({exc.__class__.__name__})") from exc
  if r.status_code >= 400:
    messages = _status_messages(label)
    msg = messages.get(r.status_code, messages["default"])
    raise AssistantProviderError(f"{msg} (Status: {r.status_code})", upstream_status=r.status_code)
  try:
    return r.json()
  except ValueError as exc:
    raise AssistantProviderError(f"{label} returned a non-JSON response") from exc


@dataclass
class OpenAICompatibleProvider:
  api_key: str
  base_url: str
  model: str
  name: str = "openai"

  async def complete(self, *, system: str, prompt: str, context: dict[str, Any], image: ImageInput | None = None) -> str:
    user_content: Any = prompt
    if image is not None:
      user_content = [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": image.data_url()}},
      ]
    data = await _post_json(
      label="OpenAI",
      url=f"{self.base_url.rstrip('/')}/chat/completions",
      headers={"Authorization": f"Bearer {self.api_key}"},
      body={
        "model": self.model,
        "messages": [
          {"role": "system", "content": system},
          {"role": "user", "content": user_content},
        ],
        "max_tokens": 1000,
        "temperature": 0.7,
      },
    )
    try:
      return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
      raise AssistantProviderError("OpenAI response did not contain a message") from exc


@dataclass
class AnthropicProvider:
  api_key: str
  base_url: str
  model: str
  name: str = "anthropic"

  async def complete(self, *, system: str, prompt: str, context: dict[str, Any], image: ImageInput | None = None) -> str:
    content: list[dict[str, Any]] = []
    if image is not None:
      content.append({"type": "image", "source": {"type": "base64", "media_type": image.media_type, "data": image.data}})
    content.append({"type": "text", "text": prompt})
    data = await _post_json(
      label="Claude",
      url=f"{self.base_url.rstrip('/')}/messages",
      headers={"x-api-key": self.api_key, "anthropic-version": "2023-06-01"},
      body={
        "model": self.model,
        "max_tokens": 1024,
        "system": system,
        "messages": [{"role": "user", "content": content}],
      },
    )
    try:
      return data["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
      raise AssistantProviderError("Claude response did not contain text") from exc


_HIGH_WORDS = ("urgent", "asap", "critical", "immediately", "blocker", "important")
_LOW_WORDS = ("later", "someday", "eventually", "nice to have", "low priority")
_COLUMN_PHRASES = (
  ("in progress", "inProgress"),
  ("in-progress", "inProgress"),
  ("inprogress", "inProgress"),
  ("doing", "inProgress"),
  ("to do", "todo"),
  ("todo", "todo"),
  ("backlog", "todo"),
  ("done", "done"),
  ("completed", "done"),
  ("finished", "done"),
)
_NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10}


def _find_column(text: str) -> str | None:
  low = text.lower()
  for phrase, key in _COLUMN_PHRASES:
    if re.search(rf"\b{re.escape(phrase)}\b", low):
      return key
  return None


def _quoted(text: str) -> list[str]:
  return [a or b for a, b in re.findall(r'"([^"]+)"|\'([^\']+)\'', text)]


def _selection(text: str, *, body: str) -> dict[str, Any]:
  low = text.lower()
  m = re.search(r"\blast\s+(\d+|" + "|".join(_NUMBER_WORDS) + r")\b", low)
  if m:
    raw = m.group(1)
    return {"scope": "last", "count": int(raw) if raw.isdigit() else _NUMBER_WORDS[raw]}
  titles = _quoted(text)
  if titles:
    return {"scope": "titles", "titles": titles}
  column = _find_column(text)
  if column:
    return {"scope": "column", "column": column}
  if re.search(r"\b(all|every|everything)\b", low):
    return {"scope": "all"}
  phrase = re.sub(r"^(the|task|tasks)\s+", "", body.strip(), flags=re.IGNORECASE)
  phrase = re.sub(r"\s+(task|tasks)$", "", phrase, flags=re.IGNORECASE).strip()
  return {"scope": "titles", "titles": [phrase] if phrase else []}


@dataclass
class LocalDeterministicProvider:
  """Offline provider that answers the instruction templates from the request text alone."""

  name: str = "local"

  async def complete(self, *, system: str, prompt: str, context: dict[str, Any], image: ImageInput | None = None) -> str:
    kind = context.get("kind", "generate")
    request = str(context.get("request") or "").strip()
    if kind == "assign":
      return json.dumps(self._assign(request))
    if kind == "delete":
      return json.dumps(self._delete(request))
    return json.dumps(self._generate(request))

  def _generate(self, request: str) -> list[dict[str, Any]]:
    low = request.lower()
    priority = "medium"
    if any(w in low for w in _HIGH_WORDS):
      priority = "high"
    elif any(w in low for w in _LOW_WORDS):
      priority = "low"
    status = _find_column(request) or "todo"
    assignee = None
    am = re.search(r"\b(?:assign(?:ed)?|give)\s+(?:it\s+|them\s+)?to\s+([A-Za-z][\w.'-]*(?:\s+[A-Z][\w.'-]*)*)", request)
    if am:
      assignee = am.group(1).strip()
      request = request[: am.start()].strip(" ,.;")

    body = re.sub(r"^(please\s+)?(create|add|make|generate|plan)\s+", "", request, flags=re.IGNORECASE)
    body = re.sub(r"^(a\s+|some\s+|\d+\s+)?(new\s+)?(tasks?|todos?)\s*(for|to|:)?\s*", "", body, flags=re.IGNORECASE)
    parts = [p.strip(" .") for p in re.split(r",|;|\band\b|\n", body) if p.strip(" .")]
    if not parts:
      parts = [request or "New task"]

    tasks: list[dict[str, Any]] = []
    for part in parts:
      title = part[:1].upper() + part[1:]
      task: dict[str, Any] = {
        "title": title[:50],
        "description": f"{title}."[:200],
        "priority": priority,
        "estimatedTime": 30,
        "status": status,
      }
      if assignee:
        task["assigneeName"] = assignee
      tasks.append(task)
    return tasks

  def _assign(self, request: str) -> dict[str, Any]:
    m = re.match(r"^(?P<head>.*)\bto\s+(?P<name>[A-Za-z][\w.'-]*(?:\s+[A-Za-z][\w.'-]*)*)\s*[.!]?\s*$", request, flags=re.DOTALL)
    assignee = m.group("name").strip() if m else ""
    head = m.group("head") if m else request
    body = re.sub(r"^.*?\b(assign|give|delegate|put)\b\s*", "", head, flags=re.IGNORECASE)
    body = re.sub(r"^(all|every|everything)\s*(the\s+)?(tasks?)?\s*(in|from|under)?\s*", "", body, flags=re.IGNORECASE)
    return {"assigneeName": assignee, "selection": _selection(head, body=body)}

  def _delete(self, request: str) -> dict[str, Any]:
    body = re.sub(r"^.*?\b(delete|remove|clear|drop)\b\s*", "", request, flags=re.IGNORECASE)
    body = re.sub(r"^(all|every|everything)\s*(the\s+)?(tasks?)?\s*(in|from|under)?\s*", "", body, flags=re.IGNORECASE)
    return {"selection": _selection(request, body=body)}


def get_ai_provider() -> AIProvider:
  choice = settings.ai_provider.strip().lower()
  if choice == "openai":
    if not settings.openai_api_key:
      raise AssistantProviderError("OpenAI API key not configured", status_code=503)
    return OpenAICompatibleProvider(api_key=settings.openai_api_key, base_url=settings.openai_base_url, model=settings.openai_model)
  if choice in ("anthropic", "claude"):
    if not settings.anthropic_api_key:
      raise AssistantProviderError("Claude API key not configured", status_code=503)
    return AnthropicProvider(api_key=settings.anthropic_api_key, base_url=settings.anthropic_base_url, model=settings.anthropic_model)
  if choice == "local":
    return LocalDeterministicProvider()
  raise AssistantProviderError(f"Unknown AI provider: {settings.ai_provider!r}", status_code=503)
