"""
Central v1 API router – registers all endpoint sub-routers.
"""
from fastapi import APIRouter
import logging

from timetrack.api.v1.endpoints import (
    audit_log,
    budget,
    catalog,
    employees,
    notifications,
    suggestions,
    time_entries,
)

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api/v1")

logger.info("Registering v1 API routers")
api_router.include_router(employees.router)
api_router.include_router(catalog.router)
api_router.include_router(time_entries.router)
api_router.include_router(suggestions.router)
api_router.include_router(budget.router)
api_router.include_router(notifications.router)
api_router.include_router(audit_log.router)
