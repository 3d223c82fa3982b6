from __future__ import annotations


class AssistantError(RuntimeError):
  """Any failure that aborts an assistant request before the board is touched."""

  status_code = 422

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class AssistantParseError(AssistantError):
  def __init__(self, message: str, *, raw: str | None = None) -> None:
    super().__init__(message)
    self.raw = raw


class AssistantValidationError(AssistantError):
  pass


class AssistantResolutionError(AssistantError):
  pass


class AssistantProviderError(AssistantError):
  status_code = 502

  def __init__(self, message: str, *, upstream_status: int | None = None, status_code: int | None = None) -> None:
    super().__init__(message)
    self.upstream_status = upstream_status
    if status_code is not None:
      self.status_code = status_code
