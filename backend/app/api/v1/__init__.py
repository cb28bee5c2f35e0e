"""
API v1 Router - SocietyOps
"""
from fastapi import APIRouter
from app.api.v1.endpoints import (
    sales_status,
    development_status,
    plots,
)
from app.schemas.common import ErrorResponse

# Documented error envelope shared by every route
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation or business rule error"},
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Duplicate or conflicting record"},
}

router = APIRouter(responses=ERROR_RESPONSES)

# Sales status configuration and workflow
router.include_router(
    sales_status.router,
    prefix="/sales-status",
    tags=["sales-status"]
)

# Development status configuration and progress
router.include_router(
    development_status.router,
    prefix="/development-status",
    tags=["development-status"]
)

# Plots
router.include_router(
    plots.router,
    prefix="/plots",
    tags=["plots"]
)
