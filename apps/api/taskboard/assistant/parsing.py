"""
Recover a JSON payload from completion text.

Models are asked for bare JSON but regularly wrap it in a fenced block or surround
it with prose, so parsing falls back through: the whole text, the first fenced
block, then the outermost bracketed span.
"""

from __future__ import annotations

import json
import re
from typing import Any

from taskboard.assistant.errors import AssistantParseError
from taskboard.logging_config import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")


def _try_load(text: str) -> tuple[bool, Any]:
  try:
    return True, json.loads(text)
  except (ValueError, TypeError):
    return False, None


def _bracket_span(text: str, opener: str, closer: str) -> str | None:
  start = text.find(opener)
  end = text.rfind(closer)
  if start == -1 or end <= start:
    return None
  return text[start : end + 1]


def extract_json(content: str | None) -> Any:
  if content is None or not str(content).strip():
    raise AssistantParseError("The assistant returned an empty response", raw=content)
  text = str(content).strip()

  ok, value = _try_load(text)
  if ok:
    return value

  m = _FENCE_RE.search(text)
  if m:
    ok, value = _try_load(m.group(1).strip())
    if ok:
      logger.debug("Recovered JSON from fenced block")
      return value

  spans = [s for s in (_bracket_span(text, "[", "]"), _bracket_span(text, "{", "}")) if s]
  # Prefer whichever structure opens first in the text.
  spans.sort(key=text.find)
  for span in spans:
    ok, value = _try_load(span)
    if ok:
      logger.debug("Recovered JSON from bracket scan")
      return value

  raise AssistantParseError("Could not extract valid JSON from the assistant response", raw=text[:500])
