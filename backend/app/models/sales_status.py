"""
Sales Status model

Admin-configured statuses a plot or file moves through while being sold.
The ``status_type`` decides which other statuses it may move to; the
transition table itself lives in app.core.status_config.
"""
from sqlalchemy import Column, String, Boolean

from app.core.status_config import (
    SalesStatusType,
    get_allowed_sales_transitions,
    get_badge_variant,
)
from app.db.base import Base
from app.models.status_base import StatusDefinitionMixin, status_table_indexes


class SalesStatus(StatusDefinitionMixin, Base):
    """Configurable sales status (Available, Booked, Allotted, ...)"""
    __tablename__ = "sales_statuses"

    status_name = Column(String(50), nullable=False)
    status_code = Column(String(20), nullable=False)
    status_type = Column(
        String(20), default=SalesStatusType.AVAILABLE.value, nullable=False, index=True
    )

    allows_sale = Column(Boolean, default=False, nullable=False, index=True)
    requires_approval = Column(Boolean, default=False, nullable=False)
    notification_template = Column(String(1000), nullable=True)

    def __repr__(self):
        return f"<SalesStatus(id={self.id}, code='{self.status_code}', type='{self.status_type}')>"

    @property
    def allowed_transitions(self) -> list:
        """Status types reachable from this one (computed, never stored)"""
        return get_allowed_sales_transitions(self.status_type)

    @property
    def badge_variant(self) -> str:
        return get_badge_variant(self.status_type)


status_table_indexes(SalesStatus, "sales_statuses")
