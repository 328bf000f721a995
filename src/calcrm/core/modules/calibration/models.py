from datetime import datetime
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from calcrm.core.db import SequencedRecord
from calcrm.core.modules.attachment.models import AttachmentInfo
from calcrm.core.modules.gauge.models import GaugeSummary, Traceability
from calcrm.core.modules.project.models import ProjectSummary
from calcrm.core.modules.user.models import UserSummary


class CalibrationType(StrEnum):
    INTERNAL = "Internal"
    EXTERNAL = "External"


class CalibrationStatus(StrEnum):
    COMPLETED = "Completed"
    PENDING = "Pending"
    OVERDUE = "Overdue"


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


OptionalIdentifier = Annotated[str | None, AfterValidator(blank_to_none)]


class Calibration(SequencedRecord):
    """Calibration event of a gauge within a project, identified as C-NNN."""

    calibration_id: str = ""  # Assigned on insert unless given explicitly
    project: UUID
    gauge_id: str | None = None  # Human identifier of the gauge (G-NNN)
    calibration_date: datetime
    calibration_due_date: datetime
    calibrated_by: str = ""
    calibration_type: CalibrationType = CalibrationType.INTERNAL
    traceability: Traceability = Traceability.NIST
    certificate_number: str = ""
    report_link: str = ""
    attachments: list[AttachmentInfo] = Field(default_factory=list)
    status: CalibrationStatus = CalibrationStatus.COMPLETED


class CalibrationView(Calibration):
    """Calibration with project, gauge and creator inlined."""

    project: ProjectSummary | None = None  # type: ignore[assignment]
    gauge: GaugeSummary | None = None
    created_by: UserSummary | None = None  # type: ignore[assignment]


class CalibrationCreate(BaseModel):
    """Request to create a calibration.

    `project_id` accepts the project UUID or its P-NNN identifier; a blank
    `gauge_id` is stored as no gauge.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    calibration_id: OptionalIdentifier = Field(None, description="Explicit identifier, allocated when omitted")
    project_id: str = Field(..., min_length=1)
    gauge_id: OptionalIdentifier = None
    calibration_date: datetime
    calibration_due_date: datetime
    calibrated_by: str = ""
    calibration_type: CalibrationType = CalibrationType.INTERNAL
    traceability: Traceability = Traceability.NIST
    certificate_number: str = ""
    report_link: str = ""
    status: CalibrationStatus = CalibrationStatus.COMPLETED


class CalibrationUpdate(BaseModel):
    """Partial calibration update. New attachments are appended, never replaced."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    project_id: str | None = None
    gauge_id: OptionalIdentifier = None
    calibration_date: datetime | None = None
    calibration_due_date: datetime | None = None
    calibrated_by: str | None = None
    calibration_type: CalibrationType | None = None
    traceability: Traceability | None = None
    certificate_number: str | None = None
    report_link: str | None = None
    status: CalibrationStatus | None = None
