from __future__ import annotations

import pytest

from taskboard import server


def test_main_passes_cli_options_to_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
  calls: list[tuple[tuple, dict]] = []
  monkeypatch.setattr(server.uvicorn, "run", lambda *a, **kw: calls.append((a, kw)))

  server.main(["--host", "0.0.0.0", "--port", "9001"])

  ((args, kwargs),) = calls
  assert args == ("taskboard.main:app",)
  assert (kwargs["host"], kwargs["port"], kwargs["reload"]) == ("0.0.0.0", 9001, False)


def test_parser_defaults() -> None:
  ns = server.build_parser().parse_args([])
  assert (ns.host, ns.port, ns.reload) == ("127.0.0.1", 8000, False)
