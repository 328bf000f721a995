from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import ConnectionFailure, DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from calcrm.app import App
from calcrm.config import Config
from calcrm.errors import UserError
from calcrm.web.error_handlers import (
    connection_failure_handler,
    duplicate_key_handler,
    general_exception_handler,
    http_exception_handler,
    request_validation_handler,
    user_error_handler,
)
from calcrm.web.openapi import set_custom_openapi
from calcrm.web.routers import (
    admin_router,
    auth_router,
    calibrations_router,
    chat_router,
    gauges_router,
    projects_router,
    reports_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Calibration CRM API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "OK", "message": "Server is running"}

    app.include_router(auth_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(gauges_router, prefix="/api")
    app.include_router(calibrations_router, prefix="/api")
    app.include_router(reports_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(chat_router, prefix="/api")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PydanticValidationError, request_validation_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(ConnectionFailure, connection_failure_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
