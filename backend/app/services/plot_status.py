"""
Plot Status Service

Plots only change sales status through change_sales_status(), which runs
the same transition validator clients can call on its own.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import DuplicateError, InvalidStateError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models.development_status import DevelopmentStatus
from app.models.plot import Plot
from app.models.sales_status import SalesStatus
from app.schemas.plot import PlotCreate
from app.services import sales_status as sales_status_service
from app.services import status_common

logger = get_logger(__name__)


def _live_plots(db: Session):
    return db.query(Plot).filter(Plot.is_deleted.is_(False))


def get_plot(db: Session, plot_id: int) -> Plot:
    plot = _live_plots(db).filter(Plot.id == plot_id).first()
    if plot is None:
        raise NotFoundError("Plot", plot_id)
    return plot


def list_project_plots(db: Session, project_code: str) -> List[Plot]:
    return (
        _live_plots(db)
        .filter(Plot.project_code == project_code)
        .order_by(Plot.plot_no.asc(), Plot.id.asc())
        .all()
    )


def _default_id(db: Session, model) -> Optional[int]:
    row = (
        status_common.live_query(db, model)
        .filter(model.is_default.is_(True), model.is_active.is_(True))
        .first()
    )
    return row.id if row else None


def create_plot(db: Session, data: PlotCreate, user_id: Optional[int]) -> Plot:
    """Create a plot; missing statuses fall back to the configured defaults."""
    plot_no = data.plot_no.strip()
    existing = (
        _live_plots(db)
        .filter(Plot.project_code == data.project_code, func.lower(Plot.plot_no) == plot_no.lower())
        .first()
    )
    if existing:
        raise DuplicateError("Plot", field="plot number", value=plot_no)

    sales_status_id = data.sales_status_id
    if sales_status_id is None:
        sales_status_id = _default_id(db, SalesStatus)
    elif status_common.find_live(db, SalesStatus, sales_status_id) is None:
        raise ValidationError("Unknown sales status", field="sales_status_id", value=sales_status_id)

    development_status_id = data.development_status_id
    if development_status_id is None:
        development_status_id = _default_id(db, DevelopmentStatus)
    elif status_common.find_live(db, DevelopmentStatus, development_status_id) is None:
        raise ValidationError("Unknown development status", field="development_status_id", value=development_status_id)

    plot = Plot(
        plot_no=plot_no,
        project_code=data.project_code,
        plot_street=data.plot_street,
        sales_status_id=sales_status_id,
        development_status_id=development_status_id,
        created_by=user_id,
        updated_by=user_id,
    )
    db.add(plot)
    status_common.commit(db, "Plot")
    db.refresh(plot)

    logger.info(
        "Plot created",
        extra={"plot_id": plot.id, "project_code": plot.project_code, "sales_status_id": sales_status_id},
    )
    return plot


def change_sales_status(
    db: Session,
    plot_id: int,
    target_status_id: int,
    fields: Dict[str, Any],
    user_id: Optional[int],
) -> Plot:
    """
    Move a plot to another sales status.

    The target must be reachable from the plot's current status and the
    target type's required fields must be present in ``fields``. A plot
    without a live current status (never set, or since soft-deleted) may
    take any live status.
    """
    plot = get_plot(db, plot_id)
    target = status_common.find_live(db, SalesStatus, target_status_id)
    if target is None:
        raise NotFoundError("Sales Status", target_status_id)

    current = None
    if plot.sales_status_id is not None:
        current = status_common.find_live(db, SalesStatus, plot.sales_status_id)
        if current is None:
            logger.warning(
                f"Plot {plot.id} references deleted sales status {plot.sales_status_id}; skipping transition check",
                extra={"plot_id": plot.id, "sales_status_id": plot.sales_status_id},
            )

    if current is not None:
        result = sales_status_service.validate_status_transition(db, current.id, target.id, fields=fields)
        if not result["is_valid"]:
            raise InvalidStateError(
                result["message"],
                current_state=current.status_type,
                allowed_states=result.get("allowed_transitions", []),
                details={"missing_fields": [r["field"] for r in result.get("missing_fields", [])]}
                if result.get("missing_fields") else None,
            )

    previous = plot.sales_status_id
    plot.sales_status_id = target.id
    plot.updated_by = user_id
    plot.updated_at = datetime.utcnow()
    status_common.commit(db, "Plot")
    db.refresh(plot)

    logger.info(
        f"Plot {plot.id} sales status: {previous} -> {target.id}",
        extra={"plot_id": plot.id, "from_status_id": previous, "to_status_id": target.id, "user_id": user_id},
    )
    return plot
