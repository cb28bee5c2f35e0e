"""
API endpoints for development status configuration and progress reports.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api.v1.deps import RecordPathId, get_current_admin_user, get_db, get_pagination_params
from app.core.limiter import limiter
from app.core.settings import settings
from app.models.user import User
from app.schemas.common import ApiResponse, ListResponse, MessageResponse, PaginationParams
from app.schemas.development_status import (
    DevBulkUpdateRequest,
    DevelopmentStatusCreate,
    DevelopmentStatusResponse,
    DevelopmentStatusStatistics,
    DevelopmentStatusUpdate,
    DevTransitionRequest,
    DevTransitionResult,
    EstimatedCompletion,
    PhaseProgress,
    PhaseWorkflow,
    ProgressReport,
    ProgressRequest,
)
from app.schemas.sales_status import BulkUpdateResult, ReorderRequest, SequenceUpdate
from app.services import development_status as service

router = APIRouter()


def _one(obj) -> DevelopmentStatusResponse:
    return DevelopmentStatusResponse.model_validate(obj)


def _many(objs) -> List[DevelopmentStatusResponse]:
    return [DevelopmentStatusResponse.model_validate(o) for o in objs]


@router.get("/", response_model=ListResponse[DevelopmentStatusResponse])
def list_development_statuses(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = None,
    sort_by: str = "sequence",
    sort_order: str = "asc",
    dev_category: Optional[str] = Query(None, description="Comma-separated categories"),
    dev_phase: Optional[str] = Query(None, description="Comma-separated phases"),
    is_active: Optional[bool] = None,
    requires_documentation: Optional[bool] = None,
    min_percentage: Optional[int] = Query(None, ge=0, le=100),
    max_percentage: Optional[int] = Query(None, ge=0, le=100),
    db: Session = Depends(get_db),
):
    rows, meta, summary = service.list_development_statuses(
        db, pagination,
        search=search, sort_by=sort_by, sort_order=sort_order,
        dev_category=dev_category, dev_phase=dev_phase, is_active=is_active,
        requires_documentation=requires_documentation,
        min_percentage=min_percentage, max_percentage=max_percentage,
    )
    return ListResponse(data=_many(rows), pagination=meta, summary=summary)


@router.get("/active", response_model=ApiResponse[List[DevelopmentStatusResponse]])
def get_active_statuses(db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_active_statuses(db)))


@router.get("/default", response_model=ApiResponse[DevelopmentStatusResponse])
def get_default_status(db: Session = Depends(get_db)):
    return ApiResponse(data=_one(service.get_default_status(db)))


@router.get("/category/{category}", response_model=ApiResponse[List[DevelopmentStatusResponse]])
def get_statuses_by_category(category: str, db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_statuses_by_category(db, category)))


@router.get("/phase/{phase}", response_model=ApiResponse[List[DevelopmentStatusResponse]])
def get_statuses_by_phase(phase: str, db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_statuses_by_phase(db, phase)))


@router.get("/workflow", response_model=ApiResponse[List[PhaseWorkflow]])
def get_development_workflow(db: Session = Depends(get_db)):
    phases = service.get_development_workflow(db)
    return ApiResponse(data=[PhaseWorkflow(**dict(p, statuses=_many(p["statuses"]))) for p in phases])


@router.get("/phases-progress", response_model=ApiResponse[List[PhaseProgress]])
def get_phases_progress(db: Session = Depends(get_db)):
    phases = service.get_phases_progress(db)
    return ApiResponse(data=[PhaseProgress(**dict(p, statuses=_many(p["statuses"]))) for p in phases])


@router.get("/stats/summary", response_model=ApiResponse[DevelopmentStatusStatistics])
def get_statistics(db: Session = Depends(get_db)):
    return ApiResponse(data=DevelopmentStatusStatistics(**service.get_statistics(db)))


@router.get("/code/{code}", response_model=ApiResponse[DevelopmentStatusResponse])
def get_status_by_code(code: str, db: Session = Depends(get_db)):
    return ApiResponse(data=_one(service.get_status_by_code(db, code)))


@router.post("/validate-transition", response_model=ApiResponse[DevTransitionResult])
@limiter.limit(settings.RATE_LIMIT_VALIDATION)
def validate_transition(
    request: Request,
    payload: DevTransitionRequest,
    db: Session = Depends(get_db),
):
    result = service.validate_status_transition(
        db, payload.current_status_id, payload.target_status_id, payload.fields
    )
    return ApiResponse(data=DevTransitionResult(**result))


@router.post("/calculate-progress", response_model=ApiResponse[ProgressReport])
@limiter.limit(settings.RATE_LIMIT_VALIDATION)
def calculate_progress(
    request: Request,
    payload: ProgressRequest,
    db: Session = Depends(get_db),
):
    report = service.calculate_project_progress(db, payload.status_ids)
    current = report["current_status"]
    return ApiResponse(data=ProgressReport(
        current_status=_one(current) if current is not None else None,
        next_statuses=_many(report["next_statuses"]),
        overall_progress=report["overall_progress"],
        timeline=[dict(entry, status=_one(entry["status"])) for entry in report["timeline"]],
    ))


@router.get("/{status_id}", response_model=ApiResponse[DevelopmentStatusResponse])
def get_status(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data=_one(service.get_status(db, status_id)))


@router.get("/{status_id}/next-statuses", response_model=ApiResponse[List[DevelopmentStatusResponse]])
def get_next_statuses(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_next_statuses(db, status_id)))


@router.get("/{status_id}/check-documentation", response_model=ApiResponse[dict])
def check_documentation(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data={"requires_documentation": service.requires_documentation(db, status_id)})


@router.get("/{status_id}/estimated-completion", response_model=ApiResponse[EstimatedCompletion])
def get_estimated_completion(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data=EstimatedCompletion(**service.get_estimated_completion(db, status_id)))


# ============================================================================
# Admin
# ============================================================================

@router.post("/", response_model=ApiResponse[DevelopmentStatusResponse], status_code=status.HTTP_201_CREATED)
def create_development_status(
    payload: DevelopmentStatusCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    created = service.create_development_status(db, payload, current_user.id)
    return ApiResponse(data=_one(created), message="Development status created successfully")


@router.post("/reorder", response_model=ApiResponse[dict])
def reorder_statuses(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    updated = service.reorder_statuses(
        db, [(o.id, o.sequence) for o in payload.status_orders], current_user.id
    )
    return ApiResponse(data={"updated": updated}, message="Development statuses reordered successfully")


@router.post("/bulk-update", response_model=ApiResponse[BulkUpdateResult])
def bulk_update_statuses(
    payload: DevBulkUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    result = service.bulk_update_statuses(db, payload.status_ids, payload.field, payload.value, current_user.id)
    return ApiResponse(data=BulkUpdateResult(**result), message=f"{result['modified']} development statuses updated")


@router.put("/{status_id}", response_model=ApiResponse[DevelopmentStatusResponse])
def update_development_status(
    status_id: RecordPathId,
    payload: DevelopmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    updated = service.update_development_status(db, status_id, payload, current_user.id)
    return ApiResponse(data=_one(updated), message="Development status updated successfully")


@router.delete("/{status_id}", response_model=MessageResponse)
def delete_development_status(
    status_id: RecordPathId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    service.delete_development_status(db, status_id, current_user.id)
    return MessageResponse(message="Development status deleted successfully")


@router.patch("/{status_id}/toggle-active", response_model=ApiResponse[DevelopmentStatusResponse])
def toggle_status_active(
    status_id: RecordPathId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    toggled = service.toggle_status_active(db, status_id, current_user.id)
    state = "activated" if toggled.is_active else "deactivated"
    return ApiResponse(data=_one(toggled), message=f"Development status {state} successfully")


@router.patch("/{status_id}/sequence", response_model=ApiResponse[DevelopmentStatusResponse])
def update_status_sequence(
    status_id: RecordPathId,
    payload: SequenceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    updated = service.update_status_sequence(db, status_id, payload.sequence, current_user.id)
    return ApiResponse(data=_one(updated), message="Development status sequence updated successfully")
