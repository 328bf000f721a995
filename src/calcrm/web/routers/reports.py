from fastapi import APIRouter, Request
from pydantic import BaseModel

from calcrm.core.modules.report.models import ReportCreate, ReportUpdate, ReportView
from calcrm.core.pagination import PageMeta
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.openapi import ErrorResponse, list_query_description
from calcrm.web.responses import DataResponse, MessageResponse

router = APIRouter(tags=["reports"])


class ReportList(BaseModel):
    reports: list[ReportView]
    pagination: PageMeta


class ReportData(BaseModel):
    report: ReportView


@router.get(
    "/reports",
    summary="List reports",
    description=list_query_description(search_fields="reportName, reportId", filters="status, projectId, reportId"),
    operation_id="listReports",
    responses={
        200: {"description": "Page of reports"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_reports(request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ReportList]:
    page = await app.get_reports(auth_token, request.query_params)
    return DataResponse(message="Reports retrieved successfully", data=ReportList(reports=page.data, pagination=page.pagination))


@router.post(
    "/reports",
    summary="Create report",
    description="Create a report for a project given by UUID or P-NNN identifier.",
    operation_id="createReport",
    status_code=201,
    responses={
        201: {"description": "Report created"},
        400: {"model": ErrorResponse, "description": "Invalid input or unknown project"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_report(data: ReportCreate, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ReportData]:
    report = await app.create_report(auth_token, data)
    return DataResponse(message="Report created successfully", data=ReportData(report=report))


@router.get(
    "/reports/{report_ref}",
    summary="Get report",
    description="Get a report by UUID or R-NNN identifier.",
    operation_id="getReport",
    responses={
        200: {"description": "Report details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Report not found"},
    },
)
async def get_report(report_ref: str, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ReportData]:
    report = await app.get_report(auth_token, report_ref)
    return DataResponse(message="Report retrieved successfully", data=ReportData(report=report))


@router.put(
    "/reports/{report_ref}",
    summary="Update report",
    description="Update provided report fields. Unknown fields are rejected.",
    operation_id="updateReport",
    responses={
        200: {"description": "Report updated"},
        400: {"model": ErrorResponse, "description": "Invalid input or unknown project"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Report not found"},
    },
)
async def update_report(report_ref: str, data: ReportUpdate, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ReportData]:
    report = await app.update_report(auth_token, report_ref, data)
    return DataResponse(message="Report updated successfully", data=ReportData(report=report))


@router.delete(
    "/reports/{report_ref}",
    summary="Delete report",
    operation_id="deleteReport",
    responses={
        200: {"description": "Report deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Report not found"},
    },
)
async def delete_report(report_ref: str, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.delete_report(auth_token, report_ref)
    return MessageResponse(message="Report deleted successfully")
