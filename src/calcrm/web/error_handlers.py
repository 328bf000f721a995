import logging
from collections.abc import Sequence
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pymongo.errors import ConnectionFailure, DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from calcrm.errors import AccessDeniedError, AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create the `{success: false, error, type}` envelope."""
    content: dict[str, object] = {"success": False, "error": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


def format_validation_errors(errors: Sequence[Any]) -> str:
    """Join pydantic error entries into one readable message."""
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        prefix = f"{'.'.join(loc)}: " if loc else ""
        messages.append(f"{prefix}{error.get('msg')}")
    return ", ".join(messages)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def request_validation_handler(_: Request, exc: Exception) -> Response:
    """Malformed request bodies and parameters are client errors (400)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError | PydanticValidationError) else []
    return create_json_error_response(
        status_code=400, message=format_validation_errors(errors) or "Invalid request", error_type="validation_error"
    )


async def duplicate_key_handler(_: Request, exc: Exception) -> Response:
    """A unique index rejected a write, reported with the public field name."""
    details = exc.details if isinstance(exc, DuplicateKeyError) else None
    key_pattern = (details or {}).get("keyPattern") or {}
    field = to_camel(next(iter(key_pattern))) if key_pattern else "Value"
    return create_json_error_response(status_code=400, message=f"{field} already exists", error_type="duplicate_key")


async def connection_failure_handler(_: Request, exc: Exception) -> Response:
    logger.error("Database unavailable: %s", exc)
    return create_json_error_response(status_code=503, message="Database unavailable", error_type="service_unavailable")


async def http_exception_handler(_: Request, exc: Exception) -> Response:
    """Wrap framework HTTP errors (unknown routes, wrong methods) in the error envelope."""
    status_code = exc.status_code if isinstance(exc, StarletteHTTPException) else 500
    if status_code == 404:
        return create_json_error_response(status_code=404, message="Route not found", error_type="not_found")
    detail = exc.detail if isinstance(exc, StarletteHTTPException) else "Request failed"
    return create_json_error_response(status_code=status_code, message=str(detail), error_type="http_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(status_code=500, message="Internal server error", error_type="internal_server_error")

