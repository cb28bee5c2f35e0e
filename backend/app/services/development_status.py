"""
Development Status Service

Development statuses move forward by sequence, or along the explicit
transitions an admin configured on each status. Percentages are tied to
phases (see DEV_PHASE_PERCENTAGES) and progress reports are derived from
them.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.status_config import (
    DEV_DOCUMENTATION_RULES,
    DEV_PHASE_NAMES,
    DevCategory,
    DevPhase,
    check_phase_percentage,
    find_missing_fields,
    format_estimated_duration,
)
from app.exceptions import BusinessRuleError, ValidationError
from app.logging_config import get_logger
from app.models.development_status import DevelopmentStatus
from app.schemas.common import PaginationMeta, PaginationParams
from app.schemas.development_status import DevelopmentStatusCreate, DevelopmentStatusUpdate
from app.services import status_common

logger = get_logger(__name__)

RESOURCE = "Development Status"

# Timeline entries without an estimate are drawn as one week
DEFAULT_TIMELINE_DAYS = 7
NEXT_BY_SEQUENCE_LIMIT = 3


def _validate_percentage(phase: str, percentage: int) -> None:
    error = check_phase_percentage(phase, percentage)
    if error:
        raise BusinessRuleError(error, rule="phase_percentage")


def _resolve_transitions(db: Session, ids: List[int], exclude_id: Optional[int] = None) -> List[DevelopmentStatus]:
    """Load the statuses named in allowed_transitions; every id must be live."""
    unique_ids = list(dict.fromkeys(ids))
    if exclude_id is not None and exclude_id in unique_ids:
        raise ValidationError("A status cannot transition to itself", field="allowed_transitions", value=exclude_id)
    if not unique_ids:
        return []
    found = status_common.live_query(db, DevelopmentStatus).filter(DevelopmentStatus.id.in_(unique_ids)).all()
    missing = set(unique_ids) - {s.id for s in found}
    if missing:
        raise ValidationError(
            "Unknown development status in allowed_transitions",
            field="allowed_transitions",
            value=",".join(str(i) for i in sorted(missing)),
        )
    return sorted(found, key=lambda s: (s.sequence, s.id))


def _phase_progress(statuses: List[DevelopmentStatus]) -> int:
    if not statuses:
        return 0
    return int(sum(s.percentage_complete for s in statuses) / len(statuses) + 0.5)


# ============================================================================
# Reads
# ============================================================================

def get_status(db: Session, status_id: int) -> DevelopmentStatus:
    return status_common.get_live(db, DevelopmentStatus, status_id, RESOURCE)


def get_status_by_code(db: Session, code: str) -> DevelopmentStatus:
    return status_common.get_by_code(db, DevelopmentStatus, code, RESOURCE)


def get_active_statuses(db: Session) -> List[DevelopmentStatus]:
    return status_common.list_active(db, DevelopmentStatus)


def get_default_status(db: Session) -> DevelopmentStatus:
    return status_common.get_default(db, DevelopmentStatus, RESOURCE)


def get_statuses_by_category(db: Session, category: str) -> List[DevelopmentStatus]:
    try:
        DevCategory(category)
    except ValueError:
        raise ValidationError(f"Invalid category: {category}", field="dev_category", value=category)
    return status_common.list_active(db, DevelopmentStatus, DevelopmentStatus.dev_category == category)


def get_statuses_by_phase(db: Session, phase: str) -> List[DevelopmentStatus]:
    try:
        DevPhase(phase)
    except ValueError:
        raise ValidationError(f"Invalid phase: {phase}", field="dev_phase", value=phase)
    return status_common.list_active(db, DevelopmentStatus, DevelopmentStatus.dev_phase == phase)


def list_development_statuses(
    db: Session,
    params: PaginationParams,
    *,
    search: Optional[str] = None,
    sort_by: str = "sequence",
    sort_order: str = "asc",
    dev_category: Optional[str] = None,
    dev_phase: Optional[str] = None,
    is_active: Optional[bool] = None,
    requires_documentation: Optional[bool] = None,
    min_percentage: Optional[int] = None,
    max_percentage: Optional[int] = None,
) -> Tuple[List[DevelopmentStatus], PaginationMeta, Dict[str, Any]]:
    filters = []
    categories = status_common.parse_csv_enum(dev_category, DevCategory, "category")
    if categories:
        filters.append(DevelopmentStatus.dev_category.in_(categories))
    phases = status_common.parse_csv_enum(dev_phase, DevPhase, "phase")
    if phases:
        filters.append(DevelopmentStatus.dev_phase.in_(phases))
    if is_active is not None:
        filters.append(DevelopmentStatus.is_active.is_(is_active))
    if requires_documentation is not None:
        filters.append(DevelopmentStatus.requires_documentation.is_(requires_documentation))
    if min_percentage is not None:
        filters.append(DevelopmentStatus.percentage_complete >= min_percentage)
    if max_percentage is not None:
        filters.append(DevelopmentStatus.percentage_complete <= max_percentage)

    rows, meta = status_common.paginate(
        db, DevelopmentStatus, params,
        search=search, sort_by=sort_by, sort_order=sort_order, filters=filters,
    )

    by_category = {c.value: 0 for c in DevCategory}
    by_phase = {p.value: 0 for p in DevPhase}
    for row in rows:
        by_category[row.dev_category] = by_category.get(row.dev_category, 0) + 1
        by_phase[row.dev_phase] = by_phase.get(row.dev_phase, 0) + 1

    summary = {
        "total_statuses": len(rows),
        "active_statuses": sum(1 for r in rows if r.is_active),
        "by_category": by_category,
        "by_phase": by_phase,
        "average_percentage": round(sum(r.percentage_complete for r in rows) / len(rows), 1) if rows else 0,
    }
    return rows, meta, summary


def get_statistics(db: Session) -> Dict[str, Any]:
    rows = status_common.live_query(db, DevelopmentStatus).all()

    def _bucket(group: List[DevelopmentStatus]) -> Dict[str, Any]:
        return {
            "total": len(group),
            "active": sum(1 for s in group if s.is_active),
            "avg_percentage": round(sum(s.percentage_complete for s in group) / len(group), 1),
        }

    by_category: Dict[str, List[DevelopmentStatus]] = {}
    by_phase: Dict[str, List[DevelopmentStatus]] = {}
    for row in rows:
        by_category.setdefault(row.dev_category, []).append(row)
        by_phase.setdefault(row.dev_phase, []).append(row)

    phase_stats = {}
    for phase, group in sorted(by_phase.items()):
        phase_stats[phase] = dict(_bucket(group), total_duration=sum(s.estimated_duration_days for s in group))

    return {
        "total_statuses": len(rows),
        "active_statuses": sum(1 for r in rows if r.is_active),
        "documentation_required_count": sum(1 for r in rows if r.requires_documentation),
        "avg_percentage_complete": round(sum(r.percentage_complete for r in rows) / len(rows), 1) if rows else 0,
        "total_estimated_duration": sum(r.estimated_duration_days for r in rows),
        "by_category": {
            category: _bucket(group)
            for category, group in sorted(by_category.items(), key=lambda kv: -len(kv[1]))
        },
        "by_phase": phase_stats,
    }


# ============================================================================
# Workflow
# ============================================================================

def get_next_statuses(db: Session, status_id: int) -> List[DevelopmentStatus]:
    """Explicit transitions when configured, otherwise the next few by sequence."""
    current = get_status(db, status_id)
    explicit = [s for s in current.allowed_transitions if s.is_active and not s.is_deleted]
    if current.allowed_transitions:
        return explicit

    return (
        status_common.live_query(db, DevelopmentStatus)
        .filter(DevelopmentStatus.is_active.is_(True), DevelopmentStatus.sequence > current.sequence)
        .order_by(DevelopmentStatus.sequence.asc(), DevelopmentStatus.id.asc())
        .limit(NEXT_BY_SEQUENCE_LIMIT)
        .all()
    )


def validate_status_transition(
    db: Session,
    current_status_id: Any,
    target_status_id: Any,
    fields: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    A move is valid when the target is an explicit transition of the
    current status or sits later in the sequence. Documentation rules apply
    when the target requires documentation.
    """
    current = status_common.find_live(db, DevelopmentStatus, current_status_id)
    target = status_common.find_live(db, DevelopmentStatus, target_status_id)
    if current is None or target is None:
        return {"is_valid": False, "message": "One or both statuses not found"}

    is_allowed = target.id in current.allowed_transition_ids
    is_forward = target.sequence > current.sequence
    rules = [dict(r) for r in DEV_DOCUMENTATION_RULES] if target.requires_documentation else []

    result: Dict[str, Any] = {
        "validation_rules": rules,
        "missing_fields": [],
        "estimated_days": target.estimated_duration_days,
    }
    if not (is_allowed or is_forward):
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


def get_development_workflow(db: Session) -> List[Dict[str, Any]]:
    """Active statuses grouped by phase, in phase order"""
    statuses = get_active_statuses(db)
    workflow = []
    for phase in DevPhase:
        group = [s for s in statuses if s.dev_phase == phase.value]
        workflow.append({
            "phase": phase.value,
            "statuses": group,
            "phase_progress": _phase_progress(group),
            "total_statuses": len(group),
            "estimated_duration": sum(s.estimated_duration_days or 0 for s in group),
        })
    return workflow


def get_phases_progress(db: Session) -> List[Dict[str, Any]]:
    phases = get_development_workflow(db)
    for entry in phases:
        entry["phase_name"] = DEV_PHASE_NAMES[DevPhase(entry["phase"])]
        entry["completed_statuses"] = sum(1 for s in entry["statuses"] if s.percentage_complete == 100)
    return phases


def calculate_project_progress(db: Session, status_ids: List[int]) -> Dict[str, Any]:
    """
    Progress report for a project that has passed through ``status_ids``.

    The status with the highest sequence is the current one; its
    percentage is the overall progress. The timeline is synthetic: one
    week per status, counted back from now.
    """
    statuses = (
        status_common.live_query(db, DevelopmentStatus)
        .filter(DevelopmentStatus.id.in_(status_ids), DevelopmentStatus.is_active.is_(True))
        .order_by(DevelopmentStatus.sequence.asc(), DevelopmentStatus.id.asc())
        .all()
    )
    if not statuses:
        return {"current_status": None, "next_statuses": [], "overall_progress": 0, "timeline": []}

    current = statuses[-1]
    now = datetime.utcnow()
    timeline = []
    for index, status in enumerate(statuses):
        duration = status.estimated_duration_days or DEFAULT_TIMELINE_DAYS
        start = now - timedelta(days=(len(statuses) - index) * 7)
        end = start + timedelta(days=duration)
        completed = index < len(statuses) - 1
        timeline.append({
            "status": status,
            "start_date": start,
            "end_date": end,
            "actual_end_date": end if completed else None,
            "is_completed": completed,
            "duration_days": duration,
        })

    return {
        "current_status": current,
        "next_statuses": get_next_statuses(db, current.id),
        "overall_progress": current.percentage_complete,
        "timeline": timeline,
    }


def requires_documentation(db: Session, status_id: int) -> bool:
    status = status_common.find_live(db, DevelopmentStatus, status_id)
    return bool(status and status.requires_documentation and status.is_active)


def get_estimated_completion(db: Session, status_id: int) -> Dict[str, Any]:
    status = get_status(db, status_id)
    days = status.estimated_duration_days or 0
    return {"estimated_days": days, "formatted_text": format_estimated_duration(days)}


# ============================================================================
# Writes
# ============================================================================

def create_development_status(
    db: Session, data: DevelopmentStatusCreate, user_id: Optional[int]
) -> DevelopmentStatus:
    status_common.ensure_unique(db, DevelopmentStatus, RESOURCE, code=data.status_code, name=data.status_name)
    _validate_percentage(data.dev_phase.value, data.percentage_complete)
    transitions = _resolve_transitions(db, data.allowed_transitions)

    if data.is_default:
        status_common.clear_other_defaults(db, DevelopmentStatus)

    values = data.model_dump(exclude={"allowed_transitions"})
    values["dev_category"] = data.dev_category.value
    values["dev_phase"] = data.dev_phase.value
    status = DevelopmentStatus(**values, created_by=user_id, updated_by=user_id)
    status.allowed_transitions = transitions
    db.add(status)
    status_common.commit(db, RESOURCE)
    db.refresh(status)

    logger.info(
        "Development status created",
        extra={"status_id": status.id, "status_code": status.status_code, "user_id": user_id},
    )
    return status


def update_development_status(
    db: Session, status_id: int, data: DevelopmentStatusUpdate, user_id: Optional[int]
) -> DevelopmentStatus:
    status = get_status(db, status_id)
    changes = data.model_dump(exclude_unset=True)
    changes = {k: v for k, v in changes.items() if v is not None or k in ("description", "icon")}

    for key in ("dev_category", "dev_phase"):
        if key in changes:
            changes[key] = changes[key].value

    status_common.ensure_unique(
        db, DevelopmentStatus, RESOURCE,
        code=changes.get("status_code"), name=changes.get("status_name"), exclude_id=status.id,
    )

    if "dev_phase" in changes or "percentage_complete" in changes:
        _validate_percentage(
            changes.get("dev_phase", status.dev_phase),
            changes.get("percentage_complete", status.percentage_complete),
        )

    if "allowed_transitions" in changes:
        status.allowed_transitions = _resolve_transitions(db, changes.pop("allowed_transitions"), exclude_id=status.id)

    if changes.get("is_default"):
        status_common.clear_other_defaults(db, DevelopmentStatus, keep_id=status.id)

    status_common.apply_changes(status, changes, user_id)
    status_common.commit(db, RESOURCE)
    db.refresh(status)

    logger.info(
        "Development status updated",
        extra={"status_id": status.id, "fields": sorted(changes), "user_id": user_id},
    )
    return status


def delete_development_status(db: Session, status_id: int, user_id: Optional[int]) -> None:
    status_common.soft_delete(db, DevelopmentStatus, status_id, user_id, RESOURCE)


def toggle_status_active(db: Session, status_id: int, user_id: Optional[int]) -> DevelopmentStatus:
    return status_common.toggle_active(db, DevelopmentStatus, status_id, user_id, RESOURCE)


def update_status_sequence(
    db: Session, status_id: int, sequence: int, user_id: Optional[int]
) -> DevelopmentStatus:
    return status_common.update_sequence(db, DevelopmentStatus, status_id, sequence, user_id, RESOURCE)


def reorder_statuses(db: Session, orders: List[Tuple[int, int]], user_id: Optional[int]) -> int:
    return status_common.reorder(db, DevelopmentStatus, orders, user_id, RESOURCE)


def bulk_update_statuses(
    db: Session, status_ids: List[int], field: str, value: bool, user_id: Optional[int]
) -> Dict[str, int]:
    return status_common.bulk_update(db, DevelopmentStatus, status_ids, field, value, user_id, RESOURCE)
