"""Pydantic schemas for projects and project costs."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.project import ProjectStatus
from .client import ClientRead


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    status: ProjectStatus = ProjectStatus.DISCOVERY
    value: Decimal = Field(..., ge=0)
    estimated_hours: Optional[Decimal] = Field(default=None, ge=0)
    worked_hours: Decimal = Field(default=Decimal("0"), ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    start_date: datetime
    due_date: datetime
    is_recurring: bool = False


class ProjectCreate(ProjectBase):
    client_id: str

    @model_validator(mode="after")
    def _check_dates(self) -> "ProjectCreate":
        # Naive timestamps are UTC, as everywhere else in the service layer.
        if _as_utc(self.due_date) < _as_utc(self.start_date):
            raise ValueError("due_date cannot be before start_date")
        return self


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    value: Optional[Decimal] = Field(default=None, ge=0)
    estimated_hours: Optional[Decimal] = Field(default=None, ge=0)
    worked_hours: Optional[Decimal] = Field(default=None, ge=0)
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    is_recurring: Optional[bool] = None


class ProjectRead(ProjectBase):
    id: str
    client_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectWithClient(ProjectRead):
    """Project listing row; ``is_overdue`` is computed per request."""

    client: Optional[ClientRead] = None
    is_overdue: bool = False


class ProjectCostBase(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    category: Optional[str] = Field(default=None, max_length=100)
    cost_date: date
    notes: Optional[str] = None


class ProjectCostCreate(ProjectCostBase):
    pass


class ProjectCostUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=100)
    cost_date: Optional[date] = None
    notes: Optional[str] = None


class ProjectCostRead(ProjectCostBase):
    id: str
    project_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectDetail(ProjectWithClient):
    """Single project read including its costs and derived profit."""

    costs: list[ProjectCostRead] = Field(default_factory=list)
    total_costs: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
