from typing import Any
from uuid import UUID

from calcrm.core.modules.project.models import Project, ProjectCreate, ProjectUpdate, ProjectView
from calcrm.core.modules.sequence.models import SequenceType
from calcrm.core.records import RecordService, record_query
from calcrm.errors import ValidationError


class ProjectService(RecordService[Project, ProjectView]):
    """Manages calibration projects."""

    sequence_type = SequenceType.PROJECT
    label = "Project"
    record_class = Project
    view_class = ProjectView
    searchable_fields = ("project_name", "project_description", "project_id")

    async def create_project(self, data: ProjectCreate, user_id: UUID | None) -> Project:
        return await self.insert(Project(**data.model_dump(), created_by=user_id))

    async def update_project(self, reference: str, data: ProjectUpdate) -> Project:
        project = await self.get_record(reference)
        return await self.apply_update(project.id, data.model_dump(exclude_unset=True, exclude_none=True))

    async def resolve_reference(self, value: str | UUID) -> UUID:
        """Resolve a project UUID or human identifier (P-001) to the project's UUID.

        Raises:
            ValidationError: If no such project exists
        """
        doc = await self.collection.find_one(record_query(value, self.scope.id_field), {"_id": 1})
        if doc is None:
            raise ValidationError(f"Project '{value}' not found")
        return doc["_id"]

    async def rewrite_reference_filter(self, query: dict[str, Any], field: str = "project") -> dict[str, Any]:
        """Replace a project reference filter value with the project's UUID.

        An unknown project makes the filter match nothing instead of failing.
        """
        value = query.get(field)
        if value is None:
            return query
        try:
            query[field] = await self.resolve_reference(value)
        except ValidationError:
            query[field] = {"$in": []}
        return query
