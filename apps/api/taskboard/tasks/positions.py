"""
Integer position bookkeeping for a single status column.

Every function works on objects exposing a mutable ``position`` attribute and keeps
the column invariant: positions are exactly ``0..n-1`` in display order.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, MutableSequence, Sequence
from typing import Protocol, TypeVar


class Positioned(Protocol):
  position: int


P = TypeVar("P", bound=Positioned)


def resequence(items: Sequence[Positioned]) -> int:
  """Assign ``position = index``; returns how many items actually changed."""
  changed = 0
  for idx, item in enumerate(items):
    if item.position != idx:
      item.position = idx
      changed += 1
  return changed


def insert_at(items: MutableSequence[P], item: P, index: int | None) -> int:
  """Insert ``item`` at ``index`` (clamped; ``None`` appends). Returns the effective index."""
  if index is None:
    idx = len(items)
  else:
    idx = min(max(index, 0), len(items))
  items.insert(idx, item)
  return idx


def compact_after_delete(remaining: Iterable[Positioned], deleted_positions: Iterable[int]) -> int:
  """
  Close the gaps left by deleted rows.

  Each survivor moves down by the number of deleted positions below it, so the
  result does not depend on the order deletions are listed in and untouched rows
  keep their relative order. Returns how many items changed.
  """
  gone = sorted(set(deleted_positions))
  changed = 0
  for item in remaining:
    shift = bisect_left(gone, item.position)
    if shift:
      item.position -= shift
      changed += 1
  return changed


def is_contiguous(positions: Iterable[int]) -> bool:
  values = list(positions)
  return sorted(values) == list(range(len(values)))
