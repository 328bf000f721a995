from typing import Any
from uuid import UUID

from calcrm.core.modules.attachment.models import UploadedFile
from calcrm.core.modules.gauge.models import Gauge, GaugeCreate, GaugeUpdate, GaugeView
from calcrm.core.modules.sequence.models import SequenceType
from calcrm.core.pagination import RelatedExpansion
from calcrm.core.records import CREATED_BY_EXPANSION, RecordService

PROJECT_EXPANSION = RelatedExpansion(field="project", collection_name="projects", fields=("project_name", "project_id"))


class GaugeService(RecordService[Gauge, GaugeView]):
    """Manages gauges and their images."""

    sequence_type = SequenceType.GAUGE
    label = "Gauge"
    record_class = Gauge
    view_class = GaugeView
    filter_aliases = {"projectId": "project"}
    searchable_fields = ("gauge_name", "gauge_model", "manufacturer", "gauge_id")
    expansions = (PROJECT_EXPANSION, CREATED_BY_EXPANSION)

    async def rewrite_filter(self, query: dict[str, Any]) -> dict[str, Any]:
        return await self.core.services.project.rewrite_reference_filter(query)

    async def create_gauge(self, data: GaugeCreate, user_id: UUID | None, image: UploadedFile | None = None) -> Gauge:
        fields = data.model_dump(exclude={"project_id"})
        project = await self.core.services.project.resolve_reference(data.project_id) if data.project_id else None
        gauge = Gauge(**fields, project=project, created_by=user_id)
        try:
            if image is not None:
                stored = await self.core.services.attachment.save_file(self.scope.collection_name, gauge.id, image)
                gauge.image = stored.file_path
            return await self.insert(gauge)
        except Exception:
            # The record was never stored, so nothing refers to its image
            await self.core.services.attachment.delete_files(self.scope.collection_name, gauge.id)
            raise

    async def update_gauge(self, reference: str, data: GaugeUpdate, image: UploadedFile | None = None) -> Gauge:
        gauge = await self.get_record(reference)
        changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"project_id"})
        if "project_id" in data.model_fields_set:
            changes["project"] = (
                await self.core.services.project.resolve_reference(data.project_id) if data.project_id else None
            )
        if image is not None:
            stored = await self.core.services.attachment.save_file(self.scope.collection_name, gauge.id, image)
            changes["image"] = stored.file_path
        return await self.apply_update(gauge.id, changes)

    async def delete_gauge(self, reference: str) -> Gauge:
        gauge = await self.delete_record(reference)
        await self.core.services.attachment.delete_files(self.scope.collection_name, gauge.id)
        return gauge
