from fastapi import APIRouter, Request
from pydantic import BaseModel

from calcrm.core.modules.calibration.models import CalibrationCreate, CalibrationUpdate, CalibrationView
from calcrm.core.pagination import PageMeta
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.forms import read_payload
from calcrm.web.openapi import ErrorResponse, list_query_description, record_body_openapi
from calcrm.web.responses import DataResponse, MessageResponse

router = APIRouter(tags=["calibrations"])

FILES_FIELD = "files"


class CalibrationList(BaseModel):
    calibrations: list[CalibrationView]
    pagination: PageMeta


class CalibrationData(BaseModel):
    calibration: CalibrationView


@router.get(
    "/calibrations",
    summary="List calibrations",
    description=list_query_description(
        search_fields="calibrationId, calibratedBy, certificateNumber",
        filters="status, calibrationType, traceability, projectId (UUID or P-NNN), gaugeId",
    ),
    operation_id="listCalibrations",
    responses={
        200: {"description": "Page of calibrations with project, gauge and creator inlined"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_calibrations(request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[CalibrationList]:
    page = await app.get_calibrations(auth_token, request.query_params)
    return DataResponse(
        message="Calibrations retrieved successfully",
        data=CalibrationList(calibrations=page.data, pagination=page.pagination),
    )


@router.post(
    "/calibrations",
    summary="Create calibration",
    description=(
        "Create a calibration from a JSON body, or from a multipart form with up to 10 `files`. "
        "The C-NNN identifier is allocated unless `calibrationId` is given."
    ),
    operation_id="createCalibration",
    status_code=201,
    openapi_extra=record_body_openapi(CalibrationCreate, FILES_FIELD, multiple=True),
    responses={
        201: {"description": "Calibration created"},
        400: {"model": ErrorResponse, "description": "Invalid input, unknown project or duplicate calibrationId"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_calibration(request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[CalibrationData]:
    fields, files = await read_payload(request, FILES_FIELD)
    data = CalibrationCreate.model_validate(fields)
    calibration = await app.create_calibration(auth_token, data, files)
    return DataResponse(message="Calibration created successfully", data=CalibrationData(calibration=calibration))


@router.get(
    "/calibrations/{calibration_ref}",
    summary="Get calibration",
    description="Get a calibration by UUID or C-NNN identifier.",
    operation_id="getCalibration",
    responses={
        200: {"description": "Calibration details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Calibration not found"},
    },
)
async def get_calibration(calibration_ref: str, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[CalibrationData]:
    calibration = await app.get_calibration(auth_token, calibration_ref)
    return DataResponse(message="Calibration retrieved successfully", data=CalibrationData(calibration=calibration))


@router.put(
    "/calibrations/{calibration_ref}",
    summary="Update calibration",
    description="Update provided calibration fields. Uploaded `files` are appended to the existing attachments.",
    operation_id="updateCalibration",
    openapi_extra=record_body_openapi(CalibrationUpdate, FILES_FIELD, multiple=True),
    responses={
        200: {"description": "Calibration updated"},
        400: {"model": ErrorResponse, "description": "Invalid input or unknown project"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Calibration not found"},
    },
)
async def update_calibration(
    calibration_ref: str, request: Request, app: AppDep, auth_token: AuthTokenDep
) -> DataResponse[CalibrationData]:
    fields, files = await read_payload(request, FILES_FIELD)
    data = CalibrationUpdate.model_validate(fields)
    calibration = await app.update_calibration(auth_token, calibration_ref, data, files)
    return DataResponse(message="Calibration updated successfully", data=CalibrationData(calibration=calibration))


@router.delete(
    "/calibrations/{calibration_ref}",
    summary="Delete calibration",
    description="Delete a calibration and its stored attachments.",
    operation_id="deleteCalibration",
    responses={
        200: {"description": "Calibration deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Calibration not found"},
    },
)
async def delete_calibration(calibration_ref: str, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.delete_calibration(auth_token, calibration_ref)
    return MessageResponse(message="Calibration deleted successfully")
