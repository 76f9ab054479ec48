"""API routers."""

from fieldops.routers.checklist import router as checklist_router
from fieldops.routers.inspections import router as inspections_router

__all__ = [
    "checklist_router",
    "inspections_router",
]
