"""
API endpoints for sales status configuration and workflow.

Reads and the transition check are public; everything that changes a
status needs an admin or super admin.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api.v1.deps import RecordPathId, get_current_admin_user, get_db, get_pagination_params
from app.core.limiter import limiter
from app.core.settings import settings
from app.models.user import User
from app.schemas.common import ApiResponse, ListResponse, MessageResponse, PaginationParams
from app.schemas.sales_status import (
    BulkUpdateResult,
    ReorderRequest,
    SalesBulkUpdateRequest,
    SalesStatusCreate,
    SalesStatusResponse,
    SalesStatusStatistics,
    SalesStatusUpdate,
    SalesStatusWorkflow,
    SequenceUpdate,
    StatusTransitionRequest,
    TransitionValidationResult,
)
from app.services import sales_status as service

router = APIRouter()


def _one(obj) -> SalesStatusResponse:
    return SalesStatusResponse.model_validate(obj)


def _many(objs) -> List[SalesStatusResponse]:
    return [SalesStatusResponse.model_validate(o) for o in objs]


# ============================================================================
# Public reads (static paths first so they are not taken for ids)
# ============================================================================

@router.get("/", response_model=ListResponse[SalesStatusResponse], summary="List sales statuses")
def list_sales_statuses(
    pagination: PaginationParams = Depends(get_pagination_params),
    search: Optional[str] = Query(None, description="Matches name, code or description"),
    sort_by: str = Query("sequence"),
    sort_order: str = Query("asc"),
    status_type: Optional[str] = Query(None, description="Comma-separated status types"),
    is_active: Optional[bool] = None,
    allows_sale: Optional[bool] = None,
    requires_approval: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    rows, meta, summary = service.list_sales_statuses(
        db, pagination,
        search=search, sort_by=sort_by, sort_order=sort_order, status_type=status_type,
        is_active=is_active, allows_sale=allows_sale, requires_approval=requires_approval,
    )
    return ListResponse(data=_many(rows), pagination=meta, summary=summary)


@router.get("/active", response_model=ApiResponse[List[SalesStatusResponse]])
def get_active_statuses(db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_active_statuses(db)))


@router.get("/default", response_model=ApiResponse[SalesStatusResponse])
def get_default_status(db: Session = Depends(get_db)):
    return ApiResponse(data=_one(service.get_default_status(db)))


@router.get("/type/{status_type}", response_model=ApiResponse[List[SalesStatusResponse]])
def get_statuses_by_type(status_type: str, db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_statuses_by_type(db, status_type)))


@router.get("/sales-allowed", response_model=ApiResponse[List[SalesStatusResponse]])
def get_sales_allowed_statuses(db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_sales_allowed_statuses(db)))


@router.get("/stats/summary", response_model=ApiResponse[SalesStatusStatistics])
def get_statistics(db: Session = Depends(get_db)):
    return ApiResponse(data=SalesStatusStatistics(**service.get_statistics(db)))


@router.get("/code/{code}", response_model=ApiResponse[SalesStatusResponse])
def get_status_by_code(code: str, db: Session = Depends(get_db)):
    return ApiResponse(data=_one(service.get_status_by_code(db, code)))


@router.post(
    "/validate-transition",
    response_model=ApiResponse[TransitionValidationResult],
    summary="Check whether a status change is allowed",
)
@limiter.limit(settings.RATE_LIMIT_VALIDATION)
def validate_transition(
    request: Request,
    payload: StatusTransitionRequest,
    db: Session = Depends(get_db),
):
    """
    Returns ``is_valid`` with a message. Unknown ids give an invalid result,
    not a 404. Supplying ``fields`` also checks the target type's required
    fields.
    """
    result = service.validate_status_transition(
        db, payload.current_status_id, payload.target_status_id, payload.fields
    )
    return ApiResponse(data=TransitionValidationResult(**result))


@router.get("/{status_id}", response_model=ApiResponse[SalesStatusResponse])
def get_status(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data=_one(service.get_status(db, status_id)))


@router.get("/{status_id}/workflow", response_model=ApiResponse[SalesStatusWorkflow])
def get_status_workflow(status_id: RecordPathId, db: Session = Depends(get_db)):
    workflow = service.get_status_workflow(db, status_id)
    return ApiResponse(data=SalesStatusWorkflow(
        current_status=_one(workflow["current_status"]),
        allowed_transitions=workflow["allowed_transitions"],
        allowed_statuses=_many(workflow["allowed_statuses"]),
        validation_rules=workflow["validation_rules"],
    ))


@router.get("/{status_id}/next-statuses", response_model=ApiResponse[List[SalesStatusResponse]])
def get_next_statuses(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data=_many(service.get_next_statuses(db, status_id)))


@router.get("/{status_id}/check-sales-allowed", response_model=ApiResponse[dict])
def check_sales_allowed(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data={"allows_sale": service.is_sales_allowed(db, status_id)})


@router.get("/{status_id}/check-requires-approval", response_model=ApiResponse[dict])
def check_requires_approval(status_id: RecordPathId, db: Session = Depends(get_db)):
    return ApiResponse(data={"requires_approval": service.requires_approval(db, status_id)})


# ============================================================================
# Admin
# ============================================================================

@router.post(
    "/",
    response_model=ApiResponse[SalesStatusResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_sales_status(
    payload: SalesStatusCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    created = service.create_sales_status(db, payload, current_user.id)
    return ApiResponse(data=_one(created), message="Sales status created successfully")


@router.post("/reorder", response_model=ApiResponse[dict])
def reorder_statuses(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    updated = service.reorder_statuses(
        db, [(o.id, o.sequence) for o in payload.status_orders], current_user.id
    )
    return ApiResponse(data={"updated": updated}, message="Sales statuses reordered successfully")


@router.post("/bulk-update", response_model=ApiResponse[BulkUpdateResult])
def bulk_update_statuses(
    payload: SalesBulkUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    result = service.bulk_update_statuses(
        db, payload.status_ids, payload.field, payload.value, current_user.id
    )
    return ApiResponse(
        data=BulkUpdateResult(**result),
        message=f"{result['modified']} sales statuses updated",
    )


@router.put("/{status_id}", response_model=ApiResponse[SalesStatusResponse])
def update_sales_status(
    status_id: RecordPathId,
    payload: SalesStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    updated = service.update_sales_status(db, status_id, payload, current_user.id)
    return ApiResponse(data=_one(updated), message="Sales status updated successfully")


@router.delete("/{status_id}", response_model=MessageResponse)
def delete_sales_status(
    status_id: RecordPathId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    service.delete_sales_status(db, status_id, current_user.id)
    return MessageResponse(message="Sales status deleted successfully")


@router.patch("/{status_id}/toggle-active", response_model=ApiResponse[SalesStatusResponse])
def toggle_status_active(
    status_id: RecordPathId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    toggled = service.toggle_status_active(db, status_id, current_user.id)
    state = "activated" if toggled.is_active else "deactivated"
    return ApiResponse(data=_one(toggled), message=f"Sales status {state} successfully")


@router.patch("/{status_id}/sequence", response_model=ApiResponse[SalesStatusResponse])
def update_status_sequence(
    status_id: RecordPathId,
    payload: SequenceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    updated = service.update_status_sequence(db, status_id, payload.sequence, current_user.id)
    return ApiResponse(data=_one(updated), message="Sales status sequence updated successfully")
