"""Models for client projects and their direct costs."""

from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID, new_guid, string_enum


class ProjectStatus(str, enum.Enum):
    """Pipeline stage of a project."""

    DISCOVERY = "discovery"
    DEVELOPMENT = "development"
    DELIVERY = "delivery"
    POST_SALE = "post_sale"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_PROJECT_STATUSES = frozenset({ProjectStatus.COMPLETED, ProjectStatus.CANCELLED})


class Project(Base):
    """A unit of client work with a value and a delivery deadline."""

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "progress >= 0 AND progress <= 100", name="ck_projects_progress_range"
        ),
        CheckConstraint("value >= 0", name="ck_projects_value_non_negative"),
    )

    id = Column("project_id", GUID(), primary_key=True, default=new_guid)
    client_id = Column(
        GUID(),
        ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(
        string_enum(ProjectStatus, "project_status_enum"),
        nullable=False,
        default=ProjectStatus.DISCOVERY,
    )
    value = Column(Numeric(12, 2), nullable=False)
    estimated_hours = Column(Numeric(8, 2), nullable=True)
    worked_hours = Column(Numeric(8, 2), nullable=False, default=0)
    progress = Column(Integer, nullable=False, default=0)
    start_date = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    client = relationship("Client", back_populates="projects")
    costs = relationship(
        "ProjectCost",
        back_populates="project",
        order_by="ProjectCost.cost_date.desc()",
    )


class ProjectCost(Base):
    """An expense booked against a project."""

    __tablename__ = "project_costs"

    id = Column("project_cost_id", GUID(), primary_key=True, default=new_guid)
    project_id = Column(
        GUID(),
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
    )
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=True)
    cost_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    project = relationship("Project", back_populates="costs")


Index("projects_client_idx", Project.client_id)
Index("projects_status_due_idx", Project.status, Project.due_date)
Index("project_costs_project_idx", ProjectCost.project_id)
