from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete, select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{ROOT / 'taskboard_test.db'}")
os.environ.setdefault("AI_PROVIDER", "local")
os.environ.setdefault("ENVIRONMENT", "test")

from taskboard.config import settings
from taskboard.db import SessionLocal, engine, init_db
from taskboard.deps import get_provider
from taskboard.main import app
from taskboard.metrics import runtime_metrics
from taskboard.models import ActivityEvent, Task, User
from taskboard.rate_limit import limiter
from taskboard.seed import seed


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


async def _reset_db() -> None:
  limiter.reset_prefix("assistant:")
  runtime_metrics.reset()
  await init_db()
  async with SessionLocal() as db:
    await db.execute(delete(ActivityEvent))
    await db.execute(delete(Task))
    await db.execute(delete(User))
    await db.commit()
  # Demo users are the only fixtures every test can rely on.
  await seed()
  await engine.dispose()


@pytest.fixture
async def board() -> None:
  if "test" not in settings.database_url.rsplit("/", 1)[-1]:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set DATABASE_URL to a *_test database (e.g. taskboard_test)."
    )
  await _reset_db()
  yield
  app.dependency_overrides.pop(get_provider, None)
  await _reset_db()


@pytest.fixture
async def client(board: None) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


async def user_id(name: str) -> int:
  async with SessionLocal() as db:
    res = await db.execute(select(User).where(User.name == name))
    return res.scalar_one().id


async def create_tasks(client: AsyncClient, *titles: str, status: str = "todo", **fields) -> list[dict]:
  body = [{"title": t, "description": f"{t} details", "status": status, **fields} for t in titles]
  res = await client.post("/api/tasks", json=body)
  assert res.status_code == 200, res.text
  return res.json()["tasks"]


async def column(client: AsyncClient, status: str) -> list[dict]:
  res = await client.get("/api/tasks")
  assert res.status_code == 200, res.text
  return [t for t in res.json()["tasks"] if t["status"] == status]


def positions(tasks: list[dict]) -> list[int]:
  return [t["position"] for t in tasks]


def titles(tasks: list[dict]) -> list[str]:
  return [t["title"] for t in tasks]
