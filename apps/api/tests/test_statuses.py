from __future__ import annotations

import pytest

from taskboard.errors import UnknownStatusError
from taskboard.tasks.statuses import canonical_status, is_valid_priority


@pytest.mark.parametrize(
  "raw,expected",
  [
    ("todo", "todo"),
    ("To Do", "todo"),
    ("backlog", "todo"),
    ("inProgress", "inProgress"),
    ("in progress", "inProgress"),
    ("in_progress", "inProgress"),
    ("In-Progress", "inProgress"),
    ("doing", "inProgress"),
    ("DONE", "done"),
    ("completed", "done"),
  ],
)
def test_canonical_status_maps_free_text(raw: str, expected: str) -> None:
  assert canonical_status(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "archived", "in review"])
def test_canonical_status_rejects_unknown(raw) -> None:
  with pytest.raises(UnknownStatusError):
    canonical_status(raw)


def test_unknown_status_is_a_400() -> None:
  assert UnknownStatusError("x").status_code == 400


def test_priorities() -> None:
  assert is_valid_priority("high")
  assert not is_valid_priority("HIGH")
  assert not is_valid_priority("urgent")
  assert not is_valid_priority(None)
