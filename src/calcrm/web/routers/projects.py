from fastapi import APIRouter, Request
from pydantic import BaseModel

from calcrm.core.modules.project.models import ProjectCreate, ProjectUpdate, ProjectView
from calcrm.core.pagination import PageMeta
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.openapi import ErrorResponse, list_query_description
from calcrm.web.responses import DataResponse, MessageResponse

router = APIRouter(tags=["projects"])


class ProjectList(BaseModel):
    projects: list[ProjectView]
    pagination: PageMeta


class ProjectData(BaseModel):
    project: ProjectView


@router.get(
    "/projects",
    summary="List projects",
    description=list_query_description(
        search_fields="projectName, projectDescription, projectId", filters="status, progress, projectName, projectId"
    ),
    operation_id="listProjects",
    responses={
        200: {"description": "Page of projects"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_projects(request: Request, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ProjectList]:
    page = await app.get_projects(auth_token, request.query_params)
    return DataResponse(
        message="Projects retrieved successfully", data=ProjectList(projects=page.data, pagination=page.pagination)
    )


@router.post(
    "/projects",
    summary="Create project",
    description="Create a project. The P-NNN identifier is allocated automatically.",
    operation_id="createProject",
    status_code=201,
    responses={
        201: {"description": "Project created"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_project(data: ProjectCreate, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ProjectData]:
    project = await app.create_project(auth_token, data)
    return DataResponse(message="Project created successfully", data=ProjectData(project=project))


@router.get(
    "/projects/{project_ref}",
    summary="Get project",
    description="Get a project by UUID or P-NNN identifier.",
    operation_id="getProject",
    responses={
        200: {"description": "Project details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)
async def get_project(project_ref: str, app: AppDep, auth_token: AuthTokenDep) -> DataResponse[ProjectData]:
    project = await app.get_project(auth_token, project_ref)
    return DataResponse(message="Project retrieved successfully", data=ProjectData(project=project))


@router.put(
    "/projects/{project_ref}",
    summary="Update project",
    description="Update provided project fields. Unknown fields are rejected.",
    operation_id="updateProject",
    responses={
        200: {"description": "Project updated"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)
async def update_project(
    project_ref: str, data: ProjectUpdate, app: AppDep, auth_token: AuthTokenDep
) -> DataResponse[ProjectData]:
    project = await app.update_project(auth_token, project_ref, data)
    return DataResponse(message="Project updated successfully", data=ProjectData(project=project))


@router.delete(
    "/projects/{project_ref}",
    summary="Delete project",
    description="Delete a project. Records referencing it keep the dangling reference.",
    operation_id="deleteProject",
    responses={
        200: {"description": "Project deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
)
async def delete_project(project_ref: str, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.delete_project(auth_token, project_ref)
    return MessageResponse(message="Project deleted successfully")
