from fastapi import APIRouter, Request
from pydantic import BaseModel

from calcrm.core.modules.gauge.models import GaugeCreate, GaugeUpdate, GaugeView
from calcrm.core.pagination import PageMeta
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.forms import read_payload
from calcrm.web.openapi import ErrorResponse, list_query_description, record_body_openapi
from calcrm.web.responses import DataResponse, MessageResponse

router = APIRouter(tags=["gauges"])

IMAGE_FIELD = "image"


class GaugeList(BaseModel):
    gauges: list[GaugeView]
    pagination: PageMeta


class GaugeData(BaseModel):
    gauge: GaugeView


@router.get(
    "/gauges",
    summary="List gauges",
    description=list_query_description(
        search_fields="gaugeName, gaugeModel, manufacturer, gaugeId",
        filters="status, gaugeType, traceability, location, projectId, gaugeId",
    ),
    operation_id="listGauges",
    responses={
        200: {"description": "Page of gauges"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_gauges(request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[GaugeList]:
    page = await app.get_gauges(auth_token, request.query_params)
    return DataResponse(message="Gauges retrieved successfully", data=GaugeList(gauges=page.data, pagination=page.pagination))


@router.post(
    "/gauges",
    summary="Create gauge",
    description=(
        "Create a gauge from a JSON body, or from a multipart form with an optional `image` file. "
        "The G-NNN identifier is allocated automatically."
    ),
    operation_id="createGauge",
    status_code=201,
    openapi_extra=record_body_openapi(GaugeCreate, IMAGE_FIELD, multiple=False),
    responses={
        201: {"description": "Gauge created"},
        400: {"model": ErrorResponse, "description": "Invalid input or unknown project"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_gauge(request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[GaugeData]:
    fields, files = await read_payload(request, IMAGE_FIELD)
    data = GaugeCreate.model_validate(fields)
    gauge = await app.create_gauge(auth_token, data, files[0] if files else None)
    return DataResponse(message="Gauge created successfully", data=GaugeData(gauge=gauge))


@router.get(
    "/gauges/{gauge_ref}",
    summary="Get gauge",
    description="Get a gauge by UUID or G-NNN identifier.",
    operation_id="getGauge",
    responses={
        200: {"description": "Gauge details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Gauge not found"},
    },
)
async def get_gauge(gauge_ref: str, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[GaugeData]:
    gauge = await app.get_gauge(auth_token, gauge_ref)
    return DataResponse(message="Gauge retrieved successfully", data=GaugeData(gauge=gauge))


@router.put(
    "/gauges/{gauge_ref}",
    summary="Update gauge",
    description="Update provided gauge fields; a new `image` file replaces the stored image path.",
    operation_id="updateGauge",
    openapi_extra=record_body_openapi(GaugeUpdate, IMAGE_FIELD, multiple=False),
    responses={
        200: {"description": "Gauge updated"},
        400: {"model": ErrorResponse, "description": "Invalid input or unknown project"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Gauge not found"},
    },
)
async def update_gauge(gauge_ref: str, request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[GaugeData]:
    fields, files = await read_payload(request, IMAGE_FIELD)
    data = GaugeUpdate.model_validate(fields)
    gauge = await app.update_gauge(auth_token, gauge_ref, data, files[0] if files else None)
    return DataResponse(message="Gauge updated successfully", data=GaugeData(gauge=gauge))


@router.delete(
    "/gauges/{gauge_ref}",
    summary="Delete gauge",
    description="Delete a gauge and its stored image.",
    operation_id="deleteGauge",
    responses={
        200: {"description": "Gauge deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Gauge not found"},
    },
)
async def delete_gauge(gauge_ref: str, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.delete_gauge(auth_token, gauge_ref)
    return MessageResponse(message="Gauge deleted successfully")
