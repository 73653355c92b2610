"""Schemas describing background job health."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SchedulerJobStatus(BaseModel):
    enabled: bool
    last_tick: Optional[datetime] = None
    completed_runs: int = Field(default=0, ge=0)
    skipped_ticks: int = Field(default=0, ge=0)
    alerts_created: int = Field(default=0, ge=0)
    last_error_at: Optional[datetime] = None
    recent_errors: list[str] = Field(default_factory=list)


class SchedulerHealthResponse(BaseModel):
    jobs: dict[str, SchedulerJobStatus] = Field(default_factory=dict)
