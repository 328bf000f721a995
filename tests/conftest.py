"""Shared pytest fixtures."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID

import pytest

from calcrm.config import Config
from calcrm.core.modules.access.service import AccessService
from calcrm.core.modules.attachment.service import AttachmentService
from calcrm.core.modules.calibration.service import CalibrationService
from calcrm.core.modules.chat.service import ChatService
from calcrm.core.modules.gauge.service import GaugeService
from calcrm.core.modules.project.service import ProjectService
from calcrm.core.modules.report.service import ReportService
from calcrm.core.modules.sequence.service import SequenceService
from calcrm.core.modules.session.service import SessionService
from calcrm.core.modules.user.models import User, UserRole
from calcrm.core.modules.user.service import UserService
from tests.fakes import FakeDatabase

SERVICES = [
    ("user", UserService),
    ("session", SessionService),
    ("access", AccessService),
    ("sequence", SequenceService),
    ("attachment", AttachmentService),
    ("project", ProjectService),
    ("gauge", GaugeService),
    ("calibration", CalibrationService),
    ("report", ReportService),
    ("chat", ChatService),
]


@pytest.fixture
def config(tmp_path):
    """Configuration pointing attachments at a temporary directory."""
    return Config(
        database_url="mongodb://localhost:27017/calcrm_test",
        jwt_secret_key="test-secret",
        attachments_path=str(tmp_path / "uploads"),
        llm_api_key="",
        admin_password=None,
    )


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
async def core(config, database):
    """Core-like container with every service wired to an in-memory database."""
    services = SimpleNamespace()
    core = SimpleNamespace(config=config, database=database, services=services)
    for name, service_class in SERVICES:
        service = service_class(database)
        service.set_core(core)
        setattr(services, name, service)
    for name, _ in SERVICES:
        await getattr(services, name).on_start()
    return core


@pytest.fixture
def mock_user():
    """Create a mock user for testing."""
    return User(
        id=UUID("87654321-4321-8765-4321-876543218765"),
        name="Test User",
        email="testuser@example.com",
        password_hash="$2b$12$hashed_password_here",
        role=UserRole.EDITOR,
    )


@pytest.fixture
def timestamps():
    """Strictly increasing creation timestamps."""
    base = datetime(2024, 1, 1, tzinfo=UTC)
    return [base + timedelta(minutes=i) for i in range(30)]
