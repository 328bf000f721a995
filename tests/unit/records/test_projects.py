"""Tests for project records: creation, lookup, listing and updates."""

from datetime import UTC, datetime

import pytest

from calcrm.core.modules.project.models import ProjectCreate, ProjectStatus, ProjectUpdate
from calcrm.errors import NotFoundError, ValidationError

STARTED = datetime(2024, 3, 1, tzinfo=UTC)


async def create(core, name, user_id=None, **fields):
    data = ProjectCreate(project_name=name, started_at=STARTED, **fields)
    return await core.services.project.create_project(data, user_id)


class TestCreateProject:
    """Tests for project creation."""

    async def test_identifiers_allocated_in_order(self, core):
        first = await create(core, "Alpha")
        second = await create(core, "Beta")
        assert first.project_id == "P-001"
        assert second.project_id == "P-002"
        assert second.sequence == 2

    async def test_defaults(self, core):
        project = await create(core, "Alpha")
        assert project.status == ProjectStatus.ACTIVE
        assert project.progress == "Not Started"
        assert project.overdue == 0

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValueError, match="extra"):
            ProjectCreate.model_validate({"projectName": "Alpha", "startedAt": STARTED, "projectId": "P-100"})

    def test_camel_case_input(self):
        data = ProjectCreate.model_validate({"projectName": " Alpha ", "startedAt": "2024-03-01T00:00:00Z"})
        assert data.project_name == "Alpha"


class TestGetProject:
    """Tests for looking up projects by UUID or identifier."""

    async def test_by_identifier_and_uuid(self, core):
        created = await create(core, "Alpha")
        assert (await core.services.project.get_record("P-001")).id == created.id
        assert (await core.services.project.get_record(str(created.id))).project_id == "P-001"
        assert (await core.services.project.get_record(created.id)).project_name == "Alpha"

    async def test_unknown_project(self, core):
        with pytest.raises(NotFoundError, match="Project not found"):
            await core.services.project.get_record("P-404")

    async def test_view_expands_creator(self, core, database, mock_user):
        database.get_collection("users").docs.append(mock_user.to_mongo())
        await create(core, "Alpha", user_id=mock_user.id)

        view = await core.services.project.get_record_view("P-001")

        assert view.created_by is not None
        assert view.created_by.name == "Test User"
        dumped = view.model_dump(by_alias=True, mode="json")
        assert dumped["projectId"] == "P-001"
        assert dumped["createdBy"] == {"id": str(mock_user.id), "name": "Test User", "email": "testuser@example.com"}
        assert "password_hash" not in dumped["createdBy"]


class TestListProjects:
    """Tests for listing projects with search, filters and sorting."""

    async def test_search_is_case_insensitive(self, core):
        await create(core, "Pressure line", project_description="North plant")
        await create(core, "Thermal survey")
        await create(core, "Boiler", project_description="pressure vessels")

        page = await core.services.project.list_records({"search": "PRESSURE"})

        assert sorted(p.project_name for p in page.data) == ["Boiler", "Pressure line"]
        assert page.pagination.total == 2

    async def test_search_matches_identifier(self, core):
        await create(core, "Alpha")
        await create(core, "Beta")
        page = await core.services.project.list_records({"search": "p-002"})
        assert [p.project_name for p in page.data] == ["Beta"]

    async def test_status_filter(self, core):
        await create(core, "Alpha", status=ProjectStatus.COMPLETED)
        await create(core, "Beta")
        page = await core.services.project.list_records({"status": "completed"})
        assert [p.project_name for p in page.data] == ["Alpha"]

    async def test_unknown_query_keys_ignored(self, core):
        await create(core, "Alpha")
        page = await core.services.project.list_records({"$where": "1", "passwordHash": "x", "status": ""})
        assert page.pagination.total == 1

    async def test_any_record_field_filters(self, core):
        """Test that fields without a dedicated filter, such as projectName, still filter by exact match."""
        await create(core, "Alpha")
        await create(core, "Beta")
        page = await core.services.project.list_records({"projectName": "Beta"})
        assert [p.project_name for p in page.data] == ["Beta"]
        assert (await core.services.project.list_records({"projectName": "nothing"})).pagination.total == 0

    async def test_filter_values_converted_to_field_type(self, core):
        await create(core, "Alpha", overdue=3)
        await create(core, "Beta")
        page = await core.services.project.list_records({"overdue": "3"})
        assert [p.project_name for p in page.data] == ["Alpha"]

    async def test_unconvertible_filter_value_matches_nothing(self, core):
        await create(core, "Alpha")
        page = await core.services.project.list_records({"overdue": "many"})
        assert page.pagination.total == 0

    async def test_sort_by_camel_case_field(self, core):
        for name in ("Charlie", "Alpha", "Bravo"):
            await create(core, name)
        page = await core.services.project.list_records({"sortBy": "projectName", "sortOrder": "asc"})
        assert [p.project_name for p in page.data] == ["Alpha", "Bravo", "Charlie"]

    async def test_pagination(self, core):
        for n in range(12):
            await create(core, f"Project {n}")
        page = await core.services.project.list_records({"page": "2", "limit": "5", "sortBy": "projectId", "sortOrder": "asc"})
        assert [p.project_id for p in page.data] == ["P-006", "P-007", "P-008", "P-009", "P-010"]
        assert page.pagination.total_pages == 3


class TestUpdateProject:
    """Tests for partial project updates."""

    async def test_only_given_fields_change(self, core):
        created = await create(core, "Alpha", overdue=2)
        updated = await core.services.project.update_project("P-001", ProjectUpdate(project_name="Alpha 2"))
        assert updated.project_name == "Alpha 2"
        assert updated.overdue == 2
        assert updated.project_id == "P-001"
        assert updated.updated_at >= created.updated_at

    async def test_delete(self, core):
        await create(core, "Alpha")
        deleted = await core.services.project.delete_record("P-001")
        assert deleted.project_name == "Alpha"
        with pytest.raises(NotFoundError):
            await core.services.project.get_record("P-001")


class TestResolveReference:
    """Tests for resolving project references given by clients."""

    async def test_identifier_or_uuid(self, core):
        created = await create(core, "Alpha")
        assert await core.services.project.resolve_reference("P-001") == created.id
        assert await core.services.project.resolve_reference(created.id) == created.id

    async def test_unknown_reference(self, core):
        with pytest.raises(ValidationError, match="Project 'P-404' not found"):
            await core.services.project.resolve_reference("P-404")

    async def test_unknown_filter_value_matches_nothing(self, core):
        query = await core.services.project.rewrite_reference_filter({"project": "P-404"})
        assert query == {"project": {"$in": []}}
