from __future__ import annotations

import argparse

import uvicorn

from taskboard.config import settings


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(prog="taskboard-api", description="Run the task board API")
  parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
  parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
  parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
  return parser


def main(argv: list[str] | None = None) -> None:
  args = build_parser().parse_args(argv)
  uvicorn.run(
    "taskboard.main:app",
    host=args.host,
    port=args.port,
    reload=args.reload,
    log_level=settings.log_level.lower(),
  )


if __name__ == "__main__":
  main()
