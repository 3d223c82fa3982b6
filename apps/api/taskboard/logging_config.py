"""
Logging setup for the task board service.

Format: LEVEL: timestamp : module.function.lineno : message
Example: INFO: 2026-10-18 13:01:23 : taskboard.tasks.service.move_task.142 : Moved task 7 todo[0] -> done[0]
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

from taskboard.config import settings


class TaskBoardFormatter(logging.Formatter):
  def format(self, record: logging.LogRecord) -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    location = f"{record.name}.{record.funcName}.{record.lineno}"
    line = f"{record.levelname}: {timestamp} : {location} : {record.getMessage()}"
    if record.exc_info:
      line = f"{line}\n{self.formatException(record.exc_info)}"
    return line


def setup_logging(level: int | str | None = None, stream: TextIO | None = None) -> None:
  """Configure the root logger once at startup."""
  if level is None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
  handler = logging.StreamHandler(stream or sys.stdout)
  handler.setFormatter(TaskBoardFormatter())

  root_logger = logging.getLogger()
  root_logger.setLevel(level)
  root_logger.handlers.clear()
  root_logger.addHandler(handler)

  logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
  logging.getLogger("httpx").setLevel(logging.WARNING)
  logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
  return logging.getLogger(name)
