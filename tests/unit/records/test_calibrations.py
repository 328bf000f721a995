"""Tests for gauges and calibrations: project references, expansions and attachments."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from calcrm.core.modules.attachment import service as attachment_service
from calcrm.core.modules.attachment.models import UploadedFile
from calcrm.core.modules.calibration.models import CalibrationCreate, CalibrationStatus, CalibrationUpdate
from calcrm.core.modules.gauge.models import GaugeCreate, GaugeType, GaugeUpdate, Traceability
from calcrm.core.modules.project.models import ProjectCreate
from calcrm.core.modules.report.models import ReportCreate
from calcrm.errors import ValidationError

DAY_ONE = datetime(2024, 5, 1, tzinfo=UTC)
DUE = datetime(2025, 5, 1, tzinfo=UTC)


@pytest.fixture
async def project(core):
    data = ProjectCreate(project_name="Refinery", started_at=DAY_ONE)
    return await core.services.project.create_project(data, None)


async def create_gauge(core, name="Dial gauge", **fields):
    data = GaugeCreate(gauge_name=name, gauge_type=GaugeType.PRESSURE, **fields)
    return await core.services.gauge.create_gauge(data, None)


async def create_calibration(core, project_id="P-001", files=None, **fields):
    data = CalibrationCreate(project_id=project_id, calibration_date=DAY_ONE, calibration_due_date=DUE, **fields)
    return await core.services.calibration.create_calibration(data, None, files)


class TestGauges:
    """Tests for gauge records."""

    async def test_project_reference_resolved(self, core, project):
        gauge = await create_gauge(core, project_id="P-001")
        assert gauge.gauge_id == "G-001"
        assert gauge.project == project.id

    async def test_without_project(self, core):
        gauge = await create_gauge(core)
        view = await core.services.gauge.get_record_view(gauge.gauge_id)
        assert view.project is None

    async def test_unknown_project_rejected(self, core):
        with pytest.raises(ValidationError, match="Project 'P-009' not found"):
            await create_gauge(core, project_id="P-009")
        assert await core.services.gauge.collection.count_documents({}) == 0

    async def test_view_expands_project(self, core, project):
        await create_gauge(core, project_id="P-001")
        view = await core.services.gauge.get_record_view("G-001")
        assert view.project is not None
        assert view.project.project_name == "Refinery"
        assert view.project.project_id == "P-001"

    async def test_image_stored(self, core, config):
        image = UploadedFile(filename="dial.jpg", content=b"jpeg", content_type="image/jpeg")
        gauge = await core.services.gauge.create_gauge(
            GaugeCreate(gauge_name="Dial", gauge_type=GaugeType.PRESSURE), None, image
        )
        path = Path(gauge.image)
        assert path.read_bytes() == b"jpeg"
        assert path.is_relative_to(Path(config.attachments_path) / "gauges" / str(gauge.id))

    async def test_update_clears_project(self, core, project):
        await create_gauge(core, project_id="P-001")
        updated = await core.services.gauge.update_gauge("G-001", GaugeUpdate(project_id=None, location="Bay 4"))
        assert updated.project is None
        assert updated.location == "Bay 4"

    async def test_delete_removes_files(self, core, config):
        image = UploadedFile(filename="dial.jpg", content=b"jpeg")
        gauge = await core.services.gauge.create_gauge(
            GaugeCreate(gauge_name="Dial", gauge_type=GaugeType.PRESSURE), None, image
        )
        await core.services.gauge.delete_gauge("G-001")
        assert not (Path(config.attachments_path) / "gauges" / str(gauge.id)).exists()

    async def test_failed_insert_removes_image(self, core, config, monkeypatch):
        async def failing_insert(scope, document):
            raise AutoReconnect("connection lost")

        monkeypatch.setattr(core.services.sequence, "insert_with_next_id", failing_insert)
        image = UploadedFile(filename="dial.jpg", content=b"jpeg")
        with pytest.raises(AutoReconnect):
            await core.services.gauge.create_gauge(GaugeCreate(gauge_name="Dial", gauge_type=GaugeType.PRESSURE), None, image)
        assert list((Path(config.attachments_path) / "gauges").iterdir()) == []

    async def test_filter_by_project_identifier(self, core, project):
        await create_gauge(core, "In project", project_id="P-001")
        await create_gauge(core, "Loose")
        page = await core.services.gauge.list_records({"projectId": "P-001"})
        assert [g.gauge_name for g in page.data] == ["In project"]

    async def test_filter_by_unknown_project_matches_nothing(self, core, project):
        await create_gauge(core, project_id="P-001")
        page = await core.services.gauge.list_records({"projectId": "P-404"})
        assert page.data == []
        assert page.pagination.total == 0


class TestCalibrations:
    """Tests for calibration records."""

    async def test_identifier_allocated(self, core, project):
        calibration = await create_calibration(core)
        assert calibration.calibration_id == "C-001"
        assert calibration.project == project.id
        assert calibration.status == CalibrationStatus.COMPLETED

    async def test_project_required_to_exist(self, core):
        with pytest.raises(ValidationError, match="Project 'P-001' not found"):
            await create_calibration(core)

    async def test_explicit_identifier_kept(self, core, project):
        calibration = await create_calibration(core, calibration_id="C-050")
        assert calibration.calibration_id == "C-050"
        assert calibration.sequence == 50
        following = await create_calibration(core)
        assert following.calibration_id == "C-051"

    async def test_explicit_duplicate_identifier_rejected(self, core, project, config):
        """Test that a rejected duplicate leaves neither a record nor its uploaded files behind."""
        await create_calibration(core)
        files = [UploadedFile(filename="cert.pdf", content=b"%PDF")]
        with pytest.raises(DuplicateKeyError):
            await create_calibration(core, files=files, calibration_id="C-001")
        assert await core.services.calibration.collection.count_documents({}) == 1
        assert list((Path(config.attachments_path) / "calibrations").iterdir()) == []

    async def test_blank_gauge_stored_as_none(self, core, project):
        calibration = await create_calibration(core, gauge_id="  ")
        assert calibration.gauge_id is None

    async def test_view_expands_gauge_and_project(self, core, project):
        await create_gauge(core, "Thermometer")
        await create_calibration(core, gauge_id="G-001")

        view = await core.services.calibration.get_record_view("C-001")

        assert view.gauge is not None
        assert view.gauge.gauge_name == "Thermometer"
        assert view.gauge_id == "G-001"
        assert view.project is not None
        assert view.project.project_id == "P-001"

    async def test_list_filters_by_project_and_gauge(self, core, project):
        other = await core.services.project.create_project(ProjectCreate(project_name="Other", started_at=DAY_ONE), None)
        await create_calibration(core, gauge_id="G-001")
        await create_calibration(core, gauge_id="G-002")
        await create_calibration(core, project_id=other.project_id, gauge_id="G-001")

        by_project = await core.services.calibration.list_records({"projectId": "P-001"})
        assert sorted(c.calibration_id for c in by_project.data) == ["C-001", "C-002"]

        by_both = await core.services.calibration.list_records({"projectId": "P-001", "gaugeId": "G-001"})
        assert [c.calibration_id for c in by_both.data] == ["C-001"]

    async def test_list_filters_by_traceability_and_type(self, core, project):
        await create_calibration(core)
        await create_calibration(core, traceability=Traceability.NABL)
        await create_calibration(core, traceability=Traceability.NABL, calibration_type="External")

        by_traceability = await core.services.calibration.list_records({"traceability": "NABL"})
        assert sorted(c.calibration_id for c in by_traceability.data) == ["C-002", "C-003"]

        by_both = await core.services.calibration.list_records({"traceability": "NABL", "calibrationType": "External"})
        assert [c.calibration_id for c in by_both.data] == ["C-003"]

    async def test_attachments_appended_on_update(self, core, project, config):
        first = UploadedFile(filename="cert.pdf", content=b"%PDF-1", content_type="application/pdf")
        calibration = await create_calibration(core, files=[first])
        assert [a.file_name for a in calibration.attachments] == ["cert.pdf"]

        second = UploadedFile(filename="../../photo.png", content=b"png", content_type="image/png")
        updated = await core.services.calibration.update_calibration("C-001", CalibrationUpdate(), [second])

        assert [a.file_name for a in updated.attachments] == ["cert.pdf", "../../photo.png"]
        stored = Path(updated.attachments[1].file_path)
        assert stored.name.endswith("-photo.png")
        assert stored.parent == Path(config.attachments_path) / "calibrations" / str(calibration.id)

    async def test_too_many_files_rejected(self, core, project):
        files = [UploadedFile(filename=f"f{n}.txt", content=b"x") for n in range(11)]
        with pytest.raises(ValidationError, match="At most 10 files"):
            await create_calibration(core, files=files)

    async def test_oversized_file_rejected_before_any_write(self, core, project, config, monkeypatch):
        monkeypatch.setattr(attachment_service, "MAX_FILE_SIZE", 4)
        files = [UploadedFile(filename="small.txt", content=b"ok"), UploadedFile(filename="big.txt", content=b"too large")]
        with pytest.raises(ValidationError, match="'big.txt' exceeds"):
            await create_calibration(core, files=files)
        assert not Path(config.attachments_path).exists()
        assert await core.services.calibration.collection.count_documents({}) == 0

    async def test_same_named_files_kept_apart(self, core, project):
        files = [UploadedFile(filename="photo.png", content=b"one"), UploadedFile(filename="photo.png", content=b"two")]
        calibration = await create_calibration(core, files=files)
        paths = [Path(a.file_path) for a in calibration.attachments]
        assert paths[0] != paths[1]
        assert [p.read_bytes() for p in paths] == [b"one", b"two"]

    async def test_update_clears_gauge(self, core, project):
        await create_calibration(core, gauge_id="G-001")
        updated = await core.services.calibration.update_calibration("C-001", CalibrationUpdate(gauge_id=""))
        assert updated.gauge_id is None

    async def test_update_keeps_gauge_when_not_sent(self, core, project):
        await create_calibration(core, gauge_id="G-001")
        updated = await core.services.calibration.update_calibration(
            "C-001", CalibrationUpdate.model_validate({"calibratedBy": "Lab A"})
        )
        assert updated.gauge_id == "G-001"
        assert updated.calibrated_by == "Lab A"

    async def test_delete_removes_files(self, core, project, config):
        calibration = await create_calibration(core, files=[UploadedFile(filename="cert.pdf", content=b"x")])
        await core.services.calibration.delete_calibration("C-001")
        assert not (Path(config.attachments_path) / "calibrations" / str(calibration.id)).exists()
        assert await core.services.calibration.collection.count_documents({}) == 0


class TestReports:
    """Tests for report records."""

    async def test_identifier_and_project(self, core, project):
        data = ReportCreate(report_name="Annual", project_id="P-001", calibration_date=DAY_ONE, calibration_due_date=DUE)
        report = await core.services.report.create_report(data, None)
        assert report.report_id == "R-001"
        assert report.project == project.id

        view = await core.services.report.get_record_view("R-001")
        assert view.project is not None
        assert view.project.project_name == "Refinery"
