from __future__ import annotations

from dataclasses import dataclass

from taskboard.tasks.positions import compact_after_delete, insert_at, is_contiguous, resequence


@dataclass
class Card:
  name: str
  position: int


def _cards(*names: str) -> list[Card]:
  return [Card(n, i) for i, n in enumerate(names)]


def test_resequence_reports_only_changed_items() -> None:
  cards = [Card("a", 0), Card("b", 5), Card("c", 2)]
  assert resequence(cards) == 2
  assert [c.position for c in cards] == [0, 1, 2]
  assert resequence(cards) == 0


def test_insert_at_clamps_and_appends() -> None:
  cards = _cards("a", "b")
  assert insert_at(cards, Card("x", 0), None) == 2
  assert insert_at(cards, Card("y", 0), 99) == 3
  assert insert_at(cards, Card("z", 0), -3) == 0
  assert [c.name for c in cards] == ["z", "a", "b", "x", "y"]


def test_compact_after_delete_closes_gaps_in_order() -> None:
  cards = _cards("a", "b", "c", "d")
  survivors = [cards[0], cards[2]]
  assert compact_after_delete(survivors, [1, 3]) == 1
  assert [(c.name, c.position) for c in survivors] == [("a", 0), ("c", 1)]


def test_compact_after_delete_handles_adjacent_and_unsorted_deletes() -> None:
  cards = _cards("a", "b", "c", "d", "e", "f")
  survivors = [cards[0], cards[4], cards[5]]
  compact_after_delete(survivors, [3, 1, 2])
  assert [c.position for c in survivors] == [0, 1, 2]


def test_compact_after_delete_ignores_duplicate_positions() -> None:
  cards = _cards("a", "b", "c")
  survivors = [cards[0], cards[2]]
  compact_after_delete(survivors, [1, 1])
  assert [c.position for c in survivors] == [0, 1]


def test_is_contiguous() -> None:
  assert is_contiguous([])
  assert is_contiguous([2, 0, 1])
  assert not is_contiguous([0, 2])
  assert not is_contiguous([0, 0, 1])
