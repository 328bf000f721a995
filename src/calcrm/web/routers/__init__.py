from calcrm.web.routers.admin import router as admin_router
from calcrm.web.routers.auth import router as auth_router
from calcrm.web.routers.calibrations import router as calibrations_router
from calcrm.web.routers.chat import router as chat_router
from calcrm.web.routers.gauges import router as gauges_router
from calcrm.web.routers.projects import router as projects_router
from calcrm.web.routers.reports import router as reports_router

__all__ = [
    "admin_router",
    "auth_router",
    "calibrations_router",
    "chat_router",
    "gauges_router",
    "projects_router",
    "reports_router",
]
