"""
API endpoints for plots.

A plot's sales status can only be changed through PATCH
/{plot_id}/sales-status, which enforces the transition rules.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.deps import RecordPathId, get_current_admin_user, get_current_user, get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.plot import PlotCreate, PlotResponse, PlotSalesStatusChange
from app.services import plot_status

router = APIRouter()


@router.post("/", response_model=ApiResponse[PlotResponse], status_code=status.HTTP_201_CREATED)
def create_plot(
    payload: PlotCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    plot = plot_status.create_plot(db, payload, current_user.id)
    return ApiResponse(data=PlotResponse.model_validate(plot), message="Plot created successfully")


@router.get("/project/{project_code}", response_model=ApiResponse[List[PlotResponse]])
def list_project_plots(
    project_code: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    plots = plot_status.list_project_plots(db, project_code)
    return ApiResponse(data=[PlotResponse.model_validate(p) for p in plots])


@router.get("/{plot_id}", response_model=ApiResponse[PlotResponse])
def get_plot(
    plot_id: RecordPathId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ApiResponse(data=PlotResponse.model_validate(plot_status.get_plot(db, plot_id)))


@router.patch("/{plot_id}/sales-status", response_model=ApiResponse[PlotResponse])
def change_sales_status(
    plot_id: RecordPathId,
    payload: PlotSalesStatusChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Move the plot to ``target_status_id``.

    Returns 400 with the validator's message when the move is not allowed
    or required fields for the target status are missing from ``fields``.
    """
    plot = plot_status.change_sales_status(
        db, plot_id, payload.target_status_id, payload.fields, current_user.id
    )
    return ApiResponse(data=PlotResponse.model_validate(plot), message="Plot sales status updated")
