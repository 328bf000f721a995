"""Human-readable sequential identifiers (PREFIX-NNN) per record collection."""

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IDENTIFIER_WIDTH = 3
SEQUENCE_FIELD = "sequence"


class SequenceType(StrEnum):
    """Record types that carry a sequential identifier."""

    PROJECT = "project"
    REPORT = "report"
    GAUGE = "gauge"
    CALIBRATION = "calibration"


class SequenceScope(BaseModel):
    """Collection, identifier field and prefix that one identifier sequence lives in."""

    model_config = ConfigDict(frozen=True)

    collection_name: str
    id_field: str
    prefix: str


class SequenceInfo(BaseModel):
    """Current state of a sequence scope."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prefix: str
    total_documents: int = Field(..., ge=0)
    last_id: str | None
    last_sequence: int
    next_id: str


class ResetResult(BaseModel):
    """Outcome of renumbering a sequence scope."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    documents_updated: int = Field(..., ge=0)
    next_id: str


SEQUENCE_SCOPES: dict[SequenceType, SequenceScope] = {
    SequenceType.PROJECT: SequenceScope(collection_name="projects", id_field="project_id", prefix="P"),
    SequenceType.REPORT: SequenceScope(collection_name="reports", id_field="report_id", prefix="R"),
    SequenceType.GAUGE: SequenceScope(collection_name="gauges", id_field="gauge_id", prefix="G"),
    SequenceType.CALIBRATION: SequenceScope(collection_name="calibrations", id_field="calibration_id", prefix="C"),
}


def format_identifier(prefix: str, sequence: int) -> str:
    """Format an identifier, e.g. ("P", 7) -> "P-007". Wider numbers are not truncated."""
    return f"{prefix}-{sequence:0{IDENTIFIER_WIDTH}d}"


def parse_sequence(identifier: str | None) -> int:
    """Extract the numeric part of an identifier ("P-007" -> 7); 0 when unparseable."""
    if not identifier:
        return 0
    parts = identifier.split("-")
    if len(parts) < 2:
        return 0
    try:
        return int(parts[1])
    except ValueError:
        return 0


def scope_filter(scope: SequenceScope) -> dict[str, Any]:
    """MongoDB filter matching every record of the scope."""
    return {scope.id_field: {"$regex": f"^{re.escape(scope.prefix)}-"}}


def numbered_filter(scope: SequenceScope) -> dict[str, Any]:
    """MongoDB filter matching records of the scope that hold a final PREFIX-NNN identifier.

    Records parked on a temporary identifier by an interrupted reset are excluded.
    """
    return {scope.id_field: {"$regex": f"^{re.escape(scope.prefix)}-\\d+$"}}
