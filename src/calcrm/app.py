from collections.abc import AsyncGenerator, AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from calcrm.config import Config
from calcrm.core.core import Core
from calcrm.core.modules.attachment.models import UploadedFile
from calcrm.core.modules.calibration.models import CalibrationCreate, CalibrationUpdate, CalibrationView
from calcrm.core.modules.chat.models import ChatMessage
from calcrm.core.modules.gauge.models import GaugeCreate, GaugeUpdate, GaugeView
from calcrm.core.modules.project.models import ProjectCreate, ProjectUpdate, ProjectView
from calcrm.core.modules.report.models import ReportCreate, ReportUpdate, ReportView
from calcrm.core.modules.sequence.models import ResetResult, SequenceInfo, SequenceType
from calcrm.core.modules.session.models import AuthResult, AuthToken, TokenClaims
from calcrm.core.modules.user.models import UserRole, UserView
from calcrm.core.pagination import PageResult
from calcrm.errors import AuthenticationError, ValidationError


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Auth ===
    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        return await self._core.services.session.is_auth_token_valid(auth_token)

    async def register(
        self, name: str, email: str, password: str, designation: str = "", role: UserRole = UserRole.VIEWER
    ) -> AuthResult:
        """Create an account and sign it in. Admin accounts cannot be self-registered."""
        if role == UserRole.ADMIN:
            raise ValidationError("Admin accounts cannot be self-registered")
        user = await self._core.services.user.create_user(name, email, password, designation, role)
        token = self._core.services.session.create_token(user)
        return AuthResult(user=UserView.from_domain(user), token=token)

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials and issue a token."""
        user = self._core.services.user.verify_password(email, password)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        token = self._core.services.session.create_token(user)
        return AuthResult(user=UserView.from_domain(user), token=token)

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        user = await self._core.services.access.ensure_authenticated(auth_token)
        return UserView.from_domain(user)

    def check_token(self, auth_token: AuthToken) -> TokenClaims:
        """Decode a token without requiring the request itself to be authenticated."""
        return self._core.services.session.decode(auth_token)

    # === Projects ===
    async def get_projects(self, auth_token: AuthToken, raw_query: Mapping[str, Any]) -> PageResult[ProjectView]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.project.list_records(raw_query)

    async def get_project(self, auth_token: AuthToken, reference: str) -> ProjectView:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.project.get_record_view(reference)

    async def create_project(self, auth_token: AuthToken, data: ProjectCreate) -> ProjectView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.project.create_project(data, current_user.id)
        return await self._core.services.project.get_record_view(record.id)

    async def update_project(self, auth_token: AuthToken, reference: str, data: ProjectUpdate) -> ProjectView:
        await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.project.update_project(reference, data)
        return await self._core.services.project.get_record_view(record.id)

    async def delete_project(self, auth_token: AuthToken, reference: str) -> None:
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.project.delete_record(reference)

    # === Gauges ===
    async def get_gauges(self, auth_token: AuthToken, raw_query: Mapping[str, Any]) -> PageResult[GaugeView]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.gauge.list_records(raw_query)

    async def get_gauge(self, auth_token: AuthToken, reference: str) -> GaugeView:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.gauge.get_record_view(reference)

    async def create_gauge(self, auth_token: AuthToken, data: GaugeCreate, image: UploadedFile | None = None) -> GaugeView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.gauge.create_gauge(data, current_user.id, image)
        return await self._core.services.gauge.get_record_view(record.id)

    async def update_gauge(
        self, auth_token: AuthToken, reference: str, data: GaugeUpdate, image: UploadedFile | None = None
    ) -> GaugeView:
        await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.gauge.update_gauge(reference, data, image)
        return await self._core.services.gauge.get_record_view(record.id)

    async def delete_gauge(self, auth_token: AuthToken, reference: str) -> None:
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.gauge.delete_gauge(reference)

    # === Calibrations ===
    async def get_calibrations(self, auth_token: AuthToken, raw_query: Mapping[str, Any]) -> PageResult[CalibrationView]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.calibration.list_records(raw_query)

    async def get_calibration(self, auth_token: AuthToken, reference: str) -> CalibrationView:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.calibration.get_record_view(reference)

    async def create_calibration(
        self, auth_token: AuthToken, data: CalibrationCreate, files: list[UploadedFile] | None = None
    ) -> CalibrationView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.calibration.create_calibration(data, current_user.id, files)
        return await self._core.services.calibration.get_record_view(record.id)

    async def update_calibration(
        self, auth_token: AuthToken, reference: str, data: CalibrationUpdate, files: list[UploadedFile] | None = None
    ) -> CalibrationView:
        await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.calibration.update_calibration(reference, data, files)
        return await self._core.services.calibration.get_record_view(record.id)

    async def delete_calibration(self, auth_token: AuthToken, reference: str) -> None:
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.calibration.delete_calibration(reference)

    # === Reports ===
    async def get_reports(self, auth_token: AuthToken, raw_query: Mapping[str, Any]) -> PageResult[ReportView]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.report.list_records(raw_query)

    async def get_report(self, auth_token: AuthToken, reference: str) -> ReportView:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.report.get_record_view(reference)

    async def create_report(self, auth_token: AuthToken, data: ReportCreate) -> ReportView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.report.create_report(data, current_user.id)
        return await self._core.services.report.get_record_view(record.id)

    async def update_report(self, auth_token: AuthToken, reference: str, data: ReportUpdate) -> ReportView:
        await self._core.services.access.ensure_authenticated(auth_token)
        record = await self._core.services.report.update_report(reference, data)
        return await self._core.services.report.get_record_view(record.id)

    async def delete_report(self, auth_token: AuthToken, reference: str) -> None:
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.report.delete_record(reference)

    # === Sequences (admin only) ===
    async def get_all_sequence_info(self, auth_token: AuthToken) -> dict[SequenceType, SequenceInfo]:
        await self._core.services.access.ensure_admin(auth_token)
        return await self._core.services.sequence.describe_all()

    async def get_sequence_info(self, auth_token: AuthToken, sequence_type: str) -> SequenceInfo:
        await self._core.services.access.ensure_admin(auth_token)
        scope = self._core.services.sequence.get_scope(sequence_type)
        return await self._core.services.sequence.describe(scope)

    async def reset_sequence(self, auth_token: AuthToken, sequence_type: str, start_from: int = 1) -> ResetResult:
        """Renumber every record of one type in creation order (admin only)."""
        await self._core.services.access.ensure_admin(auth_token)
        scope = self._core.services.sequence.get_scope(sequence_type)
        return await self._core.services.sequence.reset(scope, start_from)

    async def reset_all_sequences(self, auth_token: AuthToken, start_from: int = 1) -> dict[SequenceType, ResetResult]:
        await self._core.services.access.ensure_admin(auth_token)
        return await self._core.services.sequence.reset_all(start_from)

    # === AI chat ===
    async def stream_chat(self, auth_token: AuthToken, messages: list[ChatMessage]) -> AsyncIterator[str]:
        """Authenticate, then hand back the reply stream; authentication errors surface before streaming starts."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return self._core.services.chat.stream_chat(messages, current_user.id)
