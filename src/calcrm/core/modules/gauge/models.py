from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from calcrm.core.db import SequencedRecord
from calcrm.core.modules.project.models import ProjectSummary
from calcrm.core.modules.user.models import UserSummary


class GaugeType(StrEnum):
    PRESSURE = "Pressure"
    TEMPERATURE = "Temperature"
    FLOW = "Flow"
    VACUUM = "Vacuum"
    ELECTRICAL = "Electrical"
    MECHANICAL = "Mechanical"
    OTHER = "Other"


class Traceability(StrEnum):
    NIST = "NIST"
    ISO = "ISO"
    NABL = "NABL"
    NONE = "None"


class GaugeStatus(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    UNDER_CALIBRATION = "Under Calibration"
    RETIRED = "Retired"


class Gauge(SequencedRecord):
    """Measuring instrument, identified as G-NNN."""

    gauge_id: str = ""  # Assigned on insert
    gauge_name: str
    gauge_type: GaugeType
    gauge_model: str = ""
    manufacturer: str = ""
    location: str = ""
    traceability: Traceability = Traceability.NIST
    nominal_size: str = ""
    status: GaugeStatus = GaugeStatus.ACTIVE
    image: str = ""  # Stored file path
    project: UUID | None = None


class GaugeView(Gauge):
    """Gauge with its project and creator inlined."""

    project: ProjectSummary | None = None  # type: ignore[assignment]
    created_by: UserSummary | None = None  # type: ignore[assignment]


class GaugeSummary(BaseModel):
    """Gauge fields inlined into calibrations."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID = Field(alias="_id", serialization_alias="id")
    gauge_name: str
    gauge_id: str


class GaugeCreate(BaseModel):
    """Request to create a gauge. `project_id` accepts the project UUID or its P-NNN identifier."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    gauge_name: str = Field(..., min_length=1)
    gauge_type: GaugeType
    gauge_model: str = ""
    manufacturer: str = ""
    location: str = ""
    traceability: Traceability = Traceability.NIST
    nominal_size: str = ""
    status: GaugeStatus = GaugeStatus.ACTIVE
    project_id: str | None = None


class GaugeUpdate(BaseModel):
    """Partial gauge update, only provided fields are changed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    gauge_name: str | None = Field(None, min_length=1)
    gauge_type: GaugeType | None = None
    gauge_model: str | None = None
    manufacturer: str | None = None
    location: str | None = None
    traceability: Traceability | None = None
    nominal_size: str | None = None
    status: GaugeStatus | None = None
    project_id: str | None = None
