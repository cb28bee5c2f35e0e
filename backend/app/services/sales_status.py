"""
Sales Status Service

CRUD and workflow queries for plot sales statuses. Transition rules come
from the static table in app.core.status_config; this module only joins
them with the configured rows.
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.status_config import (
    SalesStatusType,
    find_missing_fields,
    get_allowed_sales_transitions,
    get_sales_validation_rules,
)
from app.exceptions import ValidationError
from app.logging_config import get_logger
from app.models.sales_status import SalesStatus
from app.schemas.common import PaginationMeta, PaginationParams
from app.schemas.sales_status import SalesStatusCreate, SalesStatusUpdate
from app.services import status_common

logger = get_logger(__name__)

RESOURCE = "Sales Status"


# ============================================================================
# Reads
# ============================================================================

def get_status(db: Session, status_id: int) -> SalesStatus:
    return status_common.get_live(db, SalesStatus, status_id, RESOURCE)


def get_status_by_code(db: Session, code: str) -> SalesStatus:
    return status_common.get_by_code(db, SalesStatus, code, RESOURCE)


def get_active_statuses(db: Session) -> List[SalesStatus]:
    return status_common.list_active(db, SalesStatus)


def get_default_status(db: Session) -> SalesStatus:
    return status_common.get_default(db, SalesStatus, RESOURCE)


def get_statuses_by_type(db: Session, status_type: str) -> List[SalesStatus]:
    try:
        SalesStatusType(status_type)
    except ValueError:
        raise ValidationError(f"Invalid status type: {status_type}", field="status_type", value=status_type)
    return status_common.list_active(db, SalesStatus, SalesStatus.status_type == status_type)


def get_sales_allowed_statuses(db: Session) -> List[SalesStatus]:
    return status_common.list_active(db, SalesStatus, SalesStatus.allows_sale.is_(True))


def list_sales_statuses(
    db: Session,
    params: PaginationParams,
    *,
    search: Optional[str] = None,
    sort_by: str = "sequence",
    sort_order: str = "asc",
    status_type: Optional[str] = None,
    is_active: Optional[bool] = None,
    allows_sale: Optional[bool] = None,
    requires_approval: Optional[bool] = None,
) -> Tuple[List[SalesStatus], PaginationMeta, Dict[str, Any]]:
    """
    Page through sales statuses.

    ``status_type`` is a comma-separated list. The summary counts only the
    rows on the returned page.
    """
    filters = []
    types = status_common.parse_csv_enum(status_type, SalesStatusType, "status type")
    if types:
        filters.append(SalesStatus.status_type.in_(types))
    if is_active is not None:
        filters.append(SalesStatus.is_active.is_(is_active))
    if allows_sale is not None:
        filters.append(SalesStatus.allows_sale.is_(allows_sale))
    if requires_approval is not None:
        filters.append(SalesStatus.requires_approval.is_(requires_approval))

    rows, meta = status_common.paginate(
        db, SalesStatus, params,
        search=search, sort_by=sort_by, sort_order=sort_order, filters=filters,
    )

    by_type = {t.value: 0 for t in SalesStatusType}
    for row in rows:
        by_type[row.status_type] = by_type.get(row.status_type, 0) + 1
    summary = {
        "total_statuses": len(rows),
        "active_statuses": sum(1 for r in rows if r.is_active),
        "sales_allowed_count": sum(1 for r in rows if r.allows_sale),
        "by_type": by_type,
    }
    return rows, meta, summary


def get_statistics(db: Session) -> Dict[str, Any]:
    rows = status_common.live_query(db, SalesStatus).all()

    by_type: Dict[str, Dict[str, int]] = {}
    for row in rows:
        bucket = by_type.setdefault(row.status_type, {"total": 0, "active": 0})
        bucket["total"] += 1
        if row.is_active:
            bucket["active"] += 1

    return {
        "total_statuses": len(rows),
        "active_statuses": sum(1 for r in rows if r.is_active),
        "sales_allowed_count": sum(1 for r in rows if r.allows_sale),
        "approval_required_count": sum(1 for r in rows if r.requires_approval),
        "by_type": dict(sorted(by_type.items(), key=lambda kv: -kv[1]["total"])),
    }


# ============================================================================
# Workflow
# ============================================================================

def _statuses_of_types(db: Session, types: List[str]) -> List[SalesStatus]:
    if not types:
        return []
    return status_common.list_active(db, SalesStatus, SalesStatus.status_type.in_(types))


def get_status_workflow(db: Session, status_id: int) -> Dict[str, Any]:
    """Current status, the types it may move to, live statuses of those types and its rules."""
    status = get_status(db, status_id)
    allowed = get_allowed_sales_transitions(status.status_type)
    return {
        "current_status": status,
        "allowed_transitions": allowed,
        "allowed_statuses": _statuses_of_types(db, allowed),
        "validation_rules": get_sales_validation_rules(status.status_type),
    }


def get_next_statuses(db: Session, status_id: int) -> List[SalesStatus]:
    status = get_status(db, status_id)
    return _statuses_of_types(db, get_allowed_sales_transitions(status.status_type))


def validate_status_transition(
    db: Session,
    current_status_id: Any,
    target_status_id: Any,
    fields: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Check whether a record may move from one sales status to another.

    Never raises for unknown ids. A transition is valid when the target's
    type is reachable from the current type in one step. When ``fields``
    is given, every required field of the target type must be present too.
    """
    current = status_common.find_live(db, SalesStatus, current_status_id)
    target = status_common.find_live(db, SalesStatus, target_status_id)
    if current is None or target is None:
        return {
            "is_valid": False,
            "message": "One or both statuses not found",
            "allowed_transitions": [],
        }

    allowed = get_allowed_sales_transitions(current.status_type)
    rules = get_sales_validation_rules(target.status_type)
    result: Dict[str, Any] = {
        "allowed_transitions": allowed,
        "validation_rules": rules,
        "missing_fields": [],
    }

    if target.status_type not in allowed:
        result["is_valid"] = False
        result["message"] = f"Cannot transition from {current.status_name} to {target.status_name}"
        return result

    if fields is not None:
        missing = find_missing_fields(rules, fields)
        if missing:
            result["is_valid"] = False
            result["missing_fields"] = missing
            result["message"] = "Missing required fields: " + ", ".join(r["field"] for r in missing)
            return result

    result["is_valid"] = True
    result["message"] = "Transition is valid"
    return result


def is_sales_allowed(db: Session, status_id: int) -> bool:
    status = status_common.find_live(db, SalesStatus, status_id)
    return bool(status and status.allows_sale and status.is_active)


def requires_approval(db: Session, status_id: int) -> bool:
    status = status_common.find_live(db, SalesStatus, status_id)
    return bool(status and status.requires_approval and status.is_active)


# ============================================================================
# Writes
# ============================================================================

def create_sales_status(db: Session, data: SalesStatusCreate, user_id: Optional[int]) -> SalesStatus:
    status_common.ensure_unique(db, SalesStatus, RESOURCE, code=data.status_code, name=data.status_name)

    if data.is_default:
        status_common.clear_other_defaults(db, SalesStatus)

    values = data.model_dump()
    values["status_type"] = data.status_type.value
    status = SalesStatus(**values, created_by=user_id, updated_by=user_id)
    db.add(status)
    status_common.commit(db, RESOURCE)
    db.refresh(status)

    logger.info(
        "Sales status created",
        extra={"status_id": status.id, "status_code": status.status_code, "user_id": user_id},
    )
    return status


def update_sales_status(
    db: Session, status_id: int, data: SalesStatusUpdate, user_id: Optional[int]
) -> SalesStatus:
    status = get_status(db, status_id)
    changes = data.model_dump(exclude_unset=True)

    # Explicit nulls on non-nullable columns are ignored
    changes = {k: v for k, v in changes.items() if v is not None or k in ("description", "notification_template")}
    if "status_type" in changes:
        changes["status_type"] = SalesStatusType(changes["status_type"]).value

    status_common.ensure_unique(
        db, SalesStatus, RESOURCE,
        code=changes.get("status_code"), name=changes.get("status_name"), exclude_id=status.id,
    )

    if changes.get("is_default"):
        status_common.clear_other_defaults(db, SalesStatus, keep_id=status.id)

    status_common.apply_changes(status, changes, user_id)
    status_common.commit(db, RESOURCE)
    db.refresh(status)

    logger.info(
        "Sales status updated",
        extra={"status_id": status.id, "fields": sorted(changes), "user_id": user_id},
    )
    return status


def delete_sales_status(db: Session, status_id: int, user_id: Optional[int]) -> None:
    status_common.soft_delete(db, SalesStatus, status_id, user_id, RESOURCE)


def toggle_status_active(db: Session, status_id: int, user_id: Optional[int]) -> SalesStatus:
    return status_common.toggle_active(db, SalesStatus, status_id, user_id, RESOURCE)


def update_status_sequence(db: Session, status_id: int, sequence: int, user_id: Optional[int]) -> SalesStatus:
    return status_common.update_sequence(db, SalesStatus, status_id, sequence, user_id, RESOURCE)


def reorder_statuses(db: Session, orders: List[Tuple[int, int]], user_id: Optional[int]) -> int:
    return status_common.reorder(db, SalesStatus, orders, user_id, RESOURCE)


def bulk_update_statuses(
    db: Session, status_ids: List[int], field: str, value: bool, user_id: Optional[int]
) -> Dict[str, int]:
    return status_common.bulk_update(db, SalesStatus, status_ids, field, value, user_id, RESOURCE)
