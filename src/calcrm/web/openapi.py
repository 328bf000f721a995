from typing import Any, Literal

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from calcrm.core.pagination import DEFAULT_LIMIT, MAX_LIMIT


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Calibration CRM API",
            version="0.1.0",
            summary="Projects, gauges, calibrations and reports with human-readable identifiers",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token returned by register or login",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [{"BearerAuth": []}]

        public_endpoints = {
            ("GET", "/health"),
            ("POST", "/api/auth/register"),
            ("POST", "/api/auth/login"),
            ("POST", "/api/auth/check-token"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


def list_query_description(search_fields: str, filters: str) -> str:
    """Describe the shared list query parameters of an entity endpoint."""
    return (
        "List one page of records.\n\n"
        f"- `page` (default 1), `limit` (default {DEFAULT_LIMIT}, max {MAX_LIMIT}); malformed values fall back to defaults\n"
        "- `sortBy` (camelCase field, default `createdAt`), `sortOrder` (`asc`, anything else is descending)\n"
        f"- `search`: case-insensitive substring match on {search_fields}\n"
        f"- Exact-match filters on any camelCase record field, such as {filters}; values are converted to the field type "
        "and empty values are ignored"
    )


def record_body_openapi(model: type[BaseModel], file_field: str, *, multiple: bool) -> dict[str, Any]:
    """Document a body that is read manually as JSON or as a multipart form with files."""
    schema = model.model_json_schema(by_alias=True, ref_template="#/components/schemas/{model}")
    schema.pop("$defs", None)
    file_schema: dict[str, Any] = {"type": "string", "format": "binary"}
    form_schema = {
        **schema,
        "properties": {
            **schema.get("properties", {}),
            file_field: {"type": "array", "items": file_schema} if multiple else file_schema,
        },
    }
    return {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": schema},
                "multipart/form-data": {"schema": form_schema},
            },
        }
    }


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: Literal[False] = False
    error: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": False, "error": "Token expired", "type": "authentication_error"},
                {"success": False, "error": "Project not found", "type": "not_found"},
                {"success": False, "error": "projectId already exists", "type": "duplicate_key"},
            ]
        }
    }
