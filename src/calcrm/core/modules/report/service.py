from typing import Any
from uuid import UUID

from calcrm.core.modules.gauge.service import PROJECT_EXPANSION
from calcrm.core.modules.report.models import Report, ReportCreate, ReportUpdate, ReportView
from calcrm.core.modules.sequence.models import SequenceType
from calcrm.core.records import CREATED_BY_EXPANSION, RecordService


class ReportService(RecordService[Report, ReportView]):
    """Manages calibration reports."""

    sequence_type = SequenceType.REPORT
    label = "Report"
    record_class = Report
    view_class = ReportView
    filter_aliases = {"projectId": "project"}
    searchable_fields = ("report_name", "report_id")
    expansions = (PROJECT_EXPANSION, CREATED_BY_EXPANSION)

    async def rewrite_filter(self, query: dict[str, Any]) -> dict[str, Any]:
        return await self.core.services.project.rewrite_reference_filter(query)

    async def create_report(self, data: ReportCreate, user_id: UUID | None) -> Report:
        project = await self.core.services.project.resolve_reference(data.project_id)
        return await self.insert(Report(**data.model_dump(exclude={"project_id"}), project=project, created_by=user_id))

    async def update_report(self, reference: str, data: ReportUpdate) -> Report:
        report = await self.get_record(reference)
        changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"project_id"})
        if data.project_id:
            changes["project"] = await self.core.services.project.resolve_reference(data.project_id)
        return await self.apply_update(report.id, changes)
