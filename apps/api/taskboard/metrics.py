from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from time import monotonic

_WINDOW = timedelta(hours=1)


@dataclass
class RequestSample:
  ts: datetime
  route: str
  status_code: int
  latency_ms: float


def _percentile(values: list[float], pct: float) -> float:
  if not values:
    return 0.0
  ordered = sorted(values)
  idx = max(0, int(len(ordered) * pct) - 1)
  return ordered[idx]


class RuntimeMetrics:
  """Rolling one-hour request window plus lifetime counters for board mutations."""

  def __init__(self) -> None:
    self._started_monotonic = monotonic()
    self._samples: deque[RequestSample] = deque()
    self._events: Counter[str] = Counter()
    self._lock = Lock()

  def uptime_seconds(self) -> int:
    return max(0, int(monotonic() - self._started_monotonic))

  def observe_request(self, route: str, status_code: int, latency_ms: float) -> None:
    now = datetime.now(timezone.utc)
    with self._lock:
      self._samples.append(RequestSample(ts=now, route=route, status_code=status_code, latency_ms=latency_ms))
      self._prune_locked(now)

  def count(self, event: str, n: int = 1) -> None:
    with self._lock:
      self._events[event] += n

  def _prune_locked(self, now: datetime) -> None:
    cutoff = now - _WINDOW
    while self._samples and self._samples[0].ts < cutoff:
      self._samples.popleft()

  def reset(self) -> None:
    with self._lock:
      self._samples.clear()
      self._events.clear()

  def snapshot(self) -> dict:
    now = datetime.now(timezone.utc)
    with self._lock:
      self._prune_locked(now)
      samples = list(self._samples)
      events = dict(self._events)

    latencies = [s.latency_ms for s in samples]
    client_errors = sum(1 for s in samples if 400 <= s.status_code < 500)
    server_errors = sum(1 for s in samples if s.status_code >= 500)
    by_route = Counter(s.route for s in samples)

    return {
      "uptimeSeconds": self.uptime_seconds(),
      "requestCount1h": len(samples),
      "clientErrorCount1h": client_errors,
      "serverErrorCount1h": server_errors,
      "p50LatencyMs1h": round(_percentile(latencies, 0.5), 2),
      "p95LatencyMs1h": round(_percentile(latencies, 0.95), 2),
      "requestsByRoute1h": dict(by_route.most_common(20)),
      "events": events,
    }


runtime_metrics = RuntimeMetrics()
