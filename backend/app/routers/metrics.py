"""Router exposing background job health."""

from __future__ import annotations

from fastapi import APIRouter

from .. import schemas
from ..services import SchedulerMonitor

router = APIRouter()


@router.get("/scheduler", response_model=schemas.SchedulerHealthResponse)
def get_scheduler_health() -> schemas.SchedulerHealthResponse:
    """Return the last tick, skipped ticks and recent errors of each background job."""
    jobs = {
        name: schemas.SchedulerJobStatus(**status)
        for name, status in SchedulerMonitor.snapshot().items()
    }
    return schemas.SchedulerHealthResponse(jobs=jobs)
