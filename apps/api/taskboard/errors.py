from __future__ import annotations


class TaskBoardError(RuntimeError):
  status_code = 500

  def __init__(self, message: str, *, status_code: int | None = None) -> None:
    super().__init__(message)
    self.message = message
    if status_code is not None:
      self.status_code = status_code


class ValidationFailed(TaskBoardError):
  status_code = 400


class UnknownStatusError(ValidationFailed):
  def __init__(self, value: str) -> None:
    super().__init__(f"Unknown status: {value!r}")
    self.value = value


class TaskNotFoundError(TaskBoardError):
  status_code = 404

  def __init__(self, task_id: int | None = None, message: str = "Task not found") -> None:
    super().__init__(message)
    self.task_id = task_id


class UserNotFoundError(TaskBoardError):
  status_code = 404

  def __init__(self, user_id: int | None = None, message: str = "User not found") -> None:
    super().__init__(message)
    self.user_id = user_id
