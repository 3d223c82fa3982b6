from __future__ import annotations

import math
from collections import deque
from threading import Lock
from time import monotonic


class RateLimiter:
  """
  Sliding-window request limiter keyed by caller.

  State lives in process memory, so each API replica enforces its own limit.
  Keys with no hits inside their window are dropped, so idle callers cost nothing.
  """

  def __init__(self, clock=monotonic) -> None:
    self._clock = clock
    self._lock = Lock()
    self._hits: dict[str, deque[float]] = {}
    self._windows: dict[str, int] = {}
    self._last_sweep = clock()

  def __len__(self) -> int:
    with self._lock:
      return len(self._hits)

  def hit(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
    """Record one request for ``key``. Returns (allowed, retry_after_seconds)."""
    now = self._clock()
    with self._lock:
      if now - self._last_sweep >= window_seconds:
        self._sweep(now)
      hits = self._hits.get(key)
      if hits is not None:
        while hits and now - hits[0] >= window_seconds:
          hits.popleft()
        if not hits:
          self._forget(key)
          hits = None
      if limit <= 0:
        return False, window_seconds
      if hits is not None and len(hits) >= limit:
        return False, max(1, math.ceil(window_seconds - (now - hits[0])))
      if hits is None:
        hits = self._hits[key] = deque()
      hits.append(now)
      self._windows[key] = window_seconds
      return True, 0

  def _sweep(self, now: float) -> None:
    stale = [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= self._windows.get(k, 0)]
    for k in stale:
      self._forget(k)
    self._last_sweep = now

  def _forget(self, key: str) -> None:
    self._hits.pop(key, None)
    self._windows.pop(key, None)

  def reset_prefix(self, prefix: str) -> None:
    with self._lock:
      for k in [k for k in self._hits if k.startswith(prefix)]:
        self._forget(k)


limiter = RateLimiter()
