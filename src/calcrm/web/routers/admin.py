from typing import Annotated

from fastapi import APIRouter, Body
from pydantic import BaseModel, ConfigDict, Field

from calcrm.core.modules.sequence.models import ResetResult, SequenceInfo, SequenceType
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.openapi import ErrorResponse
from calcrm.web.responses import DataResponse

router = APIRouter(tags=["admin"])

ADMIN_RESPONSES: dict[int | str, dict[str, object]] = {
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Admin role required"},
}


class ResetSequenceRequest(BaseModel):
    """Renumbering options."""

    model_config = ConfigDict(populate_by_name=True)

    start_from: int = Field(1, alias="startFrom", ge=1, description="Sequence number of the oldest record")


@router.get(
    "/admin/sequence-info",
    summary="Describe all sequences",
    description="Record count, highest identifier and next identifier for every record type.",
    operation_id="getAllSequenceInfo",
    responses={200: {"description": "Sequence state per record type"}, **ADMIN_RESPONSES},
)
async def get_all_sequence_info(app: AppDep, auth_token: AuthTokenDep) -> DataResponse[dict[SequenceType, SequenceInfo]]:
    info = await app.get_all_sequence_info(auth_token)
    return DataResponse(message="Sequence info for all models", data=info)


@router.get(
    "/admin/sequence-info/{sequence_type}",
    summary="Describe sequence",
    description="Record count, highest identifier and next identifier for one record type "
    "(project, gauge, calibration or report).",
    operation_id="getSequenceInfo",
    responses={
        200: {"description": "Sequence state"},
        400: {"model": ErrorResponse, "description": "Unknown record type"},
        **ADMIN_RESPONSES,
    },
)
async def get_sequence_info(sequence_type: str, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[SequenceInfo]:
    info = await app.get_sequence_info(auth_token, sequence_type)
    return DataResponse(message=f"Sequence info for {sequence_type}", data=info)


@router.post(
    "/admin/reset-sequence/{sequence_type}",
    summary="Renumber sequence",
    description=(
        "Renumber every record of one type in creation order starting at `startFrom`. "
        "Not atomic: a failure part-way leaves mixed numbering."
    ),
    operation_id="resetSequence",
    responses={
        200: {"description": "Records renumbered"},
        400: {"model": ErrorResponse, "description": "Unknown record type or invalid startFrom"},
        **ADMIN_RESPONSES,
    },
)
async def reset_sequence(
    sequence_type: str,
    app: AppDep,
    auth_token: AuthTokenDep,
    data: Annotated[ResetSequenceRequest | None, Body()] = None,
) -> DataResponse[ResetResult]:
    start_from = data.start_from if data else 1
    result = await app.reset_sequence(auth_token, sequence_type, start_from)
    return DataResponse(message=f"Sequence reset successfully for {sequence_type}", data=result)


@router.post(
    "/admin/reset-all-sequences",
    summary="Renumber all sequences",
    description="Renumber every record type in turn, each starting at `startFrom`.",
    operation_id="resetAllSequences",
    responses={
        200: {"description": "Records renumbered"},
        400: {"model": ErrorResponse, "description": "Invalid startFrom"},
        **ADMIN_RESPONSES,
    },
)
async def reset_all_sequences(
    app: AppDep,
    auth_token: AuthTokenDep,
    data: Annotated[ResetSequenceRequest | None, Body()] = None,
) -> DataResponse[dict[SequenceType, ResetResult]]:
    start_from = data.start_from if data else 1
    results = await app.reset_all_sequences(auth_token, start_from)
    return DataResponse(message="All sequences reset successfully", data=results)
