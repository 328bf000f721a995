from typing import Any
from uuid import UUID

import structlog

from calcrm.core.modules.attachment.models import UploadedFile
from calcrm.core.modules.calibration.models import Calibration, CalibrationCreate, CalibrationUpdate, CalibrationView
from calcrm.core.modules.gauge.service import PROJECT_EXPANSION
from calcrm.core.modules.sequence.models import SEQUENCE_FIELD, SequenceType, parse_sequence
from calcrm.core.pagination import RelatedExpansion
from calcrm.core.records import CREATED_BY_EXPANSION, RecordService

logger = structlog.get_logger(__name__)

GAUGE_EXPANSION = RelatedExpansion(
    field="gauge_id",
    collection_name="gauges",
    fields=("gauge_name", "gauge_id"),
    foreign_field="gauge_id",
    target="gauge",
)


class CalibrationService(RecordService[Calibration, CalibrationView]):
    """Manages calibration records and their attached files."""

    sequence_type = SequenceType.CALIBRATION
    label = "Calibration"
    record_class = Calibration
    view_class = CalibrationView
    filter_aliases = {"projectId": "project"}
    searchable_fields = ("calibration_id", "calibrated_by", "certificate_number")
    expansions = (PROJECT_EXPANSION, CREATED_BY_EXPANSION, GAUGE_EXPANSION)

    async def rewrite_filter(self, query: dict[str, Any]) -> dict[str, Any]:
        return await self.core.services.project.rewrite_reference_filter(query)

    async def create_calibration(
        self, data: CalibrationCreate, user_id: UUID | None, files: list[UploadedFile] | None = None
    ) -> Calibration:
        """Create calibration, allocating the next C-NNN identifier unless one is given.

        Raises:
            ValidationError: If the project does not exist or too many files are uploaded
        """
        project = await self.core.services.project.resolve_reference(data.project_id)
        calibration = Calibration(
            **data.model_dump(exclude={"project_id", "calibration_id"}),
            project=project,
            created_by=user_id,
        )
        try:
            if files:
                calibration.attachments = await self.core.services.attachment.save_files(
                    self.scope.collection_name, calibration.id, files
                )
            if data.calibration_id is None:
                return await self.insert(calibration)
            return await self._insert_with_identifier(calibration, data.calibration_id)
        except Exception:
            # The record was never stored, so nothing refers to its files
            await self.core.services.attachment.delete_files(self.scope.collection_name, calibration.id)
            raise

    async def _insert_with_identifier(self, calibration: Calibration, identifier: str) -> Calibration:
        # Explicit identifiers bypass allocation; the unique index still rejects duplicates
        document = calibration.to_mongo()
        document[self.scope.id_field] = identifier
        document[SEQUENCE_FIELD] = parse_sequence(identifier)
        await self.collection.insert_one(document)
        logger.info("record_created", collection=self.scope.collection_name, identifier=identifier)
        return Calibration.model_validate(document)

    async def update_calibration(
        self, reference: str, data: CalibrationUpdate, files: list[UploadedFile] | None = None
    ) -> Calibration:
        calibration = await self.get_record(reference)
        changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"project_id", "gauge_id"})
        if data.project_id:
            changes["project"] = await self.core.services.project.resolve_reference(data.project_id)
        if "gauge_id" in data.model_fields_set:
            changes["gauge_id"] = data.gauge_id
        if files:
            added = await self.core.services.attachment.save_files(self.scope.collection_name, calibration.id, files)
            changes["attachments"] = [a.model_dump() for a in [*calibration.attachments, *added]]
        return await self.apply_update(calibration.id, changes)

    async def delete_calibration(self, reference: str) -> Calibration:
        calibration = await self.delete_record(reference)
        await self.core.services.attachment.delete_files(self.scope.collection_name, calibration.id)
        return calibration
