"""
Shared operations for configurable status tables.

Sales statuses and development statuses follow the same housekeeping
rules; the functions here take the model class and a human-readable
resource label ("Sales Status", "Development Status") so error messages
name the right thing.

Soft-deleted rows never leave this module: every lookup filters them out.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.exceptions import BusinessRuleError, ConflictError, DuplicateError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.schemas.common import MAX_ID, PaginationMeta, PaginationParams

logger = get_logger(__name__)

SORTABLE_FIELDS = ("sequence", "status_name", "status_code", "created_at", "updated_at")


def coerce_id(value: Any) -> Optional[int]:
    """Turn an incoming id into a storable primary key, or None when it can't be one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        pk = int(value) if value.is_integer() else None
    elif isinstance(value, int):
        pk = value
    else:
        try:
            pk = int(str(value).strip())
        except ValueError:
            return None
    if pk is None or not 1 <= pk <= MAX_ID:
        return None
    return pk


def live_query(db: Session, model) -> Query:
    return db.query(model).filter(model.is_deleted.is_(False))


def find_live(db: Session, model, status_id: Any):
    """Return the non-deleted row with this id, or None (malformed ids included)."""
    pk = coerce_id(status_id)
    if pk is None:
        return None
    return live_query(db, model).filter(model.id == pk).first()


def get_live(db: Session, model, status_id: int, resource: str):
    status = find_live(db, model, status_id)
    if status is None:
        raise NotFoundError(resource, status_id)
    return status


def get_by_code(db: Session, model, code: str, resource: str):
    status = live_query(db, model).filter(model.status_code == code.strip().upper()).first()
    if status is None:
        raise NotFoundError(resource, code)
    return status


def get_default(db: Session, model, resource: str):
    status = live_query(db, model).filter(model.is_default.is_(True), model.is_active.is_(True)).first()
    if status is None:
        raise NotFoundError(f"Default {resource.lower()}")
    return status


def list_active(db: Session, model, *criteria) -> List[Any]:
    return (
        live_query(db, model)
        .filter(model.is_active.is_(True), *criteria)
        .order_by(model.sequence.asc(), model.id.asc())
        .all()
    )


def ensure_unique(
    db: Session,
    model,
    resource: str,
    *,
    code: Optional[str] = None,
    name: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> None:
    """Raise DuplicateError when another live row already uses the code or name."""
    if code:
        query = live_query(db, model).filter(model.status_code == code.upper())
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first():
            raise DuplicateError(resource, field="code", value=code.upper())

    if name:
        query = live_query(db, model).filter(func.lower(model.status_name) == name.lower())
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first():
            raise DuplicateError(resource, field="name", value=name)


def clear_other_defaults(db: Session, model, keep_id: Optional[int] = None) -> None:
    """Unset is_default on every other live row; the caller's commit makes it atomic."""
    query = live_query(db, model).filter(model.is_default.is_(True))
    if keep_id is not None:
        query = query.filter(model.id != keep_id)
    query.update({model.is_default: False}, synchronize_session="fetch")
    db.flush()


def commit(db: Session, resource: str) -> None:
    """Commit, turning a uniqueness race lost at the database into a 409."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"{resource} write rejected by database constraint: {e.orig}")
        raise ConflictError(
            f"{resource} conflicts with an existing record",
            details={"resource": resource},
        ) from e


def apply_changes(status, changes: Dict[str, Any], user_id: Optional[int]) -> None:
    for field, value in changes.items():
        setattr(status, field, value)
    status.updated_by = user_id


def soft_delete(db: Session, model, status_id: int, user_id: Optional[int], resource: str) -> None:
    status = get_live(db, model, status_id, resource)
    if status.is_default:
        raise BusinessRuleError(f"Cannot delete default {resource.lower()}", rule="default_status")

    status.is_deleted = True
    status.deleted_at = datetime.utcnow()
    status.is_active = False
    status.updated_by = user_id
    commit(db, resource)
    logger.info(
        f"{resource} deleted",
        extra={"status_id": status_id, "status_code": status.status_code, "user_id": user_id},
    )


def toggle_active(db: Session, model, status_id: int, user_id: Optional[int], resource: str):
    status = get_live(db, model, status_id, resource)
    if status.is_default and status.is_active:
        raise BusinessRuleError(f"Cannot deactivate default {resource.lower()}", rule="default_status")

    status.is_active = not status.is_active
    status.updated_by = user_id
    commit(db, resource)
    db.refresh(status)
    logger.info(
        f"{resource} {'activated' if status.is_active else 'deactivated'}",
        extra={"status_id": status_id, "user_id": user_id},
    )
    return status


def update_sequence(db: Session, model, status_id: int, sequence: int, user_id: Optional[int], resource: str):
    if sequence < 1:
        raise BusinessRuleError("Sequence must be at least 1", rule="sequence_minimum")

    status = get_live(db, model, status_id, resource)
    status.sequence = sequence
    status.updated_by = user_id
    commit(db, resource)
    db.refresh(status)
    return status


def reorder(db: Session, model, orders: Iterable[Tuple[int, int]], user_id: Optional[int], resource: str) -> int:
    """
    Apply (id, sequence) pairs. Unknown or deleted ids are skipped and
    duplicate sequences are accepted. Returns the number of rows updated.
    """
    updated = 0
    for status_id, sequence in orders:
        updated += (
            live_query(db, model)
            .filter(model.id == status_id)
            .update({model.sequence: sequence, model.updated_by: user_id}, synchronize_session="fetch")
        )
    commit(db, resource)
    logger.info(f"{resource} order updated", extra={"updated": updated, "user_id": user_id})
    return updated


def bulk_update(
    db: Session,
    model,
    status_ids: Sequence[int],
    field: str,
    value: bool,
    user_id: Optional[int],
    resource: str,
) -> Dict[str, int]:
    """
    Set one boolean flag on many rows. The default row is not protected
    here, so bulk deactivation can include it.
    """
    query = live_query(db, model).filter(model.id.in_(list(status_ids)))
    matched = query.count()
    column = getattr(model, field)
    modified = (
        live_query(db, model)
        .filter(model.id.in_(list(status_ids)), column != value)
        .update({column: value, model.updated_by: user_id}, synchronize_session="fetch")
    )
    commit(db, resource)
    logger.info(
        f"{resource} bulk update",
        extra={"field": field, "value": value, "matched": matched, "modified": modified},
    )
    return {"matched": matched, "modified": modified}


def parse_csv_enum(raw: Optional[str], enum_cls, label: str) -> List[str]:
    """Split a comma-separated filter and check each value against an enum."""
    if not raw:
        return []
    values = [v.strip() for v in raw.split(",") if v.strip()]
    allowed = {e.value for e in enum_cls}
    for value in values:
        if value not in allowed:
            raise ValidationError(f"Invalid {label}: {value}", field=label.replace(" ", "_"), value=value)
    return values


def paginate(
    db: Session,
    model,
    params: PaginationParams,
    *,
    search: Optional[str] = None,
    sort_by: str = "sequence",
    sort_order: str = "asc",
    filters: Sequence[Any] = (),
) -> Tuple[List[Any], PaginationMeta]:
    """Filtered, searched, sorted page of live rows."""
    if sort_by not in SORTABLE_FIELDS:
        raise ValidationError(f"Cannot sort by {sort_by}", field="sort_by", value=sort_by)
    if sort_order not in ("asc", "desc"):
        raise ValidationError("Sort order must be asc or desc", field="sort_order", value=sort_order)

    query = live_query(db, model).filter(*filters)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                model.status_name.ilike(pattern),
                model.status_code.ilike(pattern),
                model.description.ilike(pattern),
            )
        )

    total = query.count()
    column = getattr(model, sort_by)
    order = column.asc() if sort_order == "asc" else column.desc()
    rows = query.order_by(order, model.id.asc()).offset(params.offset).limit(params.limit).all()
    return rows, PaginationMeta.build(params, total)
