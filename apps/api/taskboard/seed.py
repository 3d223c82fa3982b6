from __future__ import annotations

from sqlalchemy import select

from taskboard.db import SessionLocal
from taskboard.logging_config import get_logger
from taskboard.models import User

logger = get_logger(__name__)

DEMO_USERS: tuple[tuple[str, str, str], ...] = (
  ("Jane Doe", "jane@example.com", "https://i.pravatar.cc/150?u=jane"),
  ("John Smith", "john@example.com", "https://i.pravatar.cc/150?u=john"),
  ("Alex Kim", "alex@example.com", "https://i.pravatar.cc/150?u=alex"),
)


async def seed() -> int:
  """Create the demo assignees that are missing (matched by email). Returns how many were added."""
  added = 0
  async with SessionLocal() as db:
    res = await db.execute(select(User.email))
    existing = {e.lower() for e in res.scalars().all()}
    for name, email, avatar in DEMO_USERS:
      if email in existing:
        continue
      db.add(User(name=name, email=email, avatar_url=avatar))
      added += 1
    await db.commit()
  if added:
    logger.info("Seeded %d demo users", added)
  return added
