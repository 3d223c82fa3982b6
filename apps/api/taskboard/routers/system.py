from __future__ import annotations

from fastapi import APIRouter

from taskboard.config import settings
from taskboard.metrics import runtime_metrics
from taskboard.schemas import MetricsOut

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
async def health() -> dict:
  return {"status": "ok"}


@router.get("/version")
async def version() -> dict:
  return {"version": settings.app_version}


@router.get("/system/metrics", response_model=MetricsOut)
async def metrics() -> MetricsOut:
  return MetricsOut(metrics=runtime_metrics.snapshot())
