from datetime import datetime
from enum import StrEnum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from calcrm.core.db import SequencedRecord
from calcrm.core.modules.user.models import UserSummary

ProjectProgress = Literal["Not Started", "0", "25", "50", "75", "100"]


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"


class Project(SequencedRecord):
    """Calibration project, identified as P-NNN."""

    project_id: str = ""  # Assigned on insert
    project_name: str
    project_description: str = ""
    overdue: int = Field(0, ge=0)
    progress: ProjectProgress = "Not Started"
    gauge: int = Field(0, ge=0, le=100)  # Gauge completion percentage
    calibration: int = Field(0, ge=0, le=100)  # Calibration completion percentage
    status: ProjectStatus = ProjectStatus.ACTIVE
    started_at: datetime


class ProjectView(Project):
    """Project with its creator inlined."""

    created_by: UserSummary | None = None  # type: ignore[assignment]


class ProjectSummary(BaseModel):
    """Project fields inlined into records that reference a project."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID = Field(alias="_id", serialization_alias="id")
    project_name: str
    project_id: str | None = None


class ProjectCreate(BaseModel):
    """Request to create a project."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    project_name: str = Field(..., min_length=1, description="Project name")
    project_description: str = ""
    overdue: int = Field(0, ge=0)
    progress: ProjectProgress = "Not Started"
    gauge: int = Field(0, ge=0, le=100)
    calibration: int = Field(0, ge=0, le=100)
    status: ProjectStatus = ProjectStatus.ACTIVE
    started_at: datetime = Field(..., description="Project start date")


class ProjectUpdate(BaseModel):
    """Partial project update, only provided fields are changed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    project_name: str | None = Field(None, min_length=1)
    project_description: str | None = None
    overdue: int | None = Field(None, ge=0)
    progress: ProjectProgress | None = None
    gauge: int | None = Field(None, ge=0, le=100)
    calibration: int | None = Field(None, ge=0, le=100)
    status: ProjectStatus | None = None
    started_at: datetime | None = None
