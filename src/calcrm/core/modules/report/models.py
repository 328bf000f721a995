from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from calcrm.core.db import SequencedRecord
from calcrm.core.modules.project.models import ProjectSummary
from calcrm.core.modules.user.models import UserSummary


class ReportStatus(StrEnum):
    COMPLETED = "completed"
    PENDING = "pending"
    OVERDUE = "overdue"


class Report(SequencedRecord):
    """Calibration report, identified as R-NNN."""

    report_id: str = ""  # Assigned on insert
    report_name: str
    project: UUID
    calibration_date: datetime
    calibration_due_date: datetime
    status: ReportStatus = ReportStatus.COMPLETED
    report_link: str = ""


class ReportView(Report):
    project: ProjectSummary | None = None  # type: ignore[assignment]
    created_by: UserSummary | None = None  # type: ignore[assignment]


class ReportCreate(BaseModel):
    """Request to create a report. `project_id` accepts the project UUID or its P-NNN identifier."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    report_name: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    calibration_date: datetime
    calibration_due_date: datetime
    status: ReportStatus = ReportStatus.COMPLETED
    report_link: str = ""


class ReportUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    report_name: str | None = Field(None, min_length=1)
    project_id: str | None = None
    calibration_date: datetime | None = None
    calibration_due_date: datetime | None = None
    status: ReportStatus | None = None
    report_link: str | None = None
