from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from calcrm.config import Config

if TYPE_CHECKING:
    from calcrm.core.modules.access.service import AccessService
    from calcrm.core.modules.attachment.service import AttachmentService
    from calcrm.core.modules.calibration.service import CalibrationService
    from calcrm.core.modules.chat.service import ChatService
    from calcrm.core.modules.gauge.service import GaugeService
    from calcrm.core.modules.project.service import ProjectService
    from calcrm.core.modules.report.service import ReportService
    from calcrm.core.modules.sequence.service import SequenceService
    from calcrm.core.modules.session.service import SessionService
    from calcrm.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that imports and initializes every service module."""

    user: UserService
    session: SessionService
    access: AccessService
    sequence: SequenceService
    attachment: AttachmentService
    project: ProjectService
    gauge: GaugeService
    calibration: CalibrationService
    report: ReportService
    chat: ChatService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services in dependency order."""
        self._services: list[Service] = []
        self._database = database

        # (attribute_name, module_path, class_name); sequence indexes must exist before records are created
        service_configs = [
            ("user", "calcrm.core.modules.user.service", "UserService"),
            ("session", "calcrm.core.modules.session.service", "SessionService"),
            ("access", "calcrm.core.modules.access.service", "AccessService"),
            ("sequence", "calcrm.core.modules.sequence.service", "SequenceService"),
            ("attachment", "calcrm.core.modules.attachment.service", "AttachmentService"),
            ("project", "calcrm.core.modules.project.service", "ProjectService"),
            ("gauge", "calcrm.core.modules.gauge.service", "GaugeService"),
            ("calibration", "calcrm.core.modules.calibration.service", "CalibrationService"),
            ("report", "calcrm.core.modules.report.service", "ReportService"),
            ("chat", "calcrm.core.modules.chat.service", "ChatService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB, and auto-register services."""
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        logger.info("core_started", database=self.database.name)

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
