"""
Development Status model

Describes how far a plot's development has progressed. Statuses are
grouped into phases, each phase owning a band of ``percentage_complete``.
Besides moving forward by sequence, a status may list explicit statuses it
can move to (including backwards), stored in an association table.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship

from app.core.status_config import DevCategory, DevPhase, format_estimated_duration
from app.db.base import Base
from app.models.status_base import StatusDefinitionMixin, status_table_indexes

development_status_transitions = Table(
    "development_status_transitions",
    Base.metadata,
    Column("from_status_id", Integer, ForeignKey("development_statuses.id", ondelete="CASCADE"), primary_key=True),
    Column("to_status_id", Integer, ForeignKey("development_statuses.id", ondelete="CASCADE"), primary_key=True),
)


class DevelopmentStatus(StatusDefinitionMixin, Base):
    """Configurable development status (Land Acquired, Foundation, Possession, ...)"""
    __tablename__ = "development_statuses"

    status_name = Column(String(100), nullable=False)
    status_code = Column(String(20), nullable=False)

    dev_category = Column(String(30), default=DevCategory.CONSTRUCTION.value, nullable=False, index=True)
    dev_phase = Column(String(30), default=DevPhase.PRE_CONSTRUCTION.value, nullable=False, index=True)

    icon = Column(String(50), nullable=True)
    percentage_complete = Column(Integer, default=0, nullable=False)
    requires_documentation = Column(Boolean, default=False, nullable=False)
    estimated_duration_days = Column(Integer, default=0, nullable=False)

    allowed_transitions = relationship(
        "DevelopmentStatus",
        secondary=development_status_transitions,
        primaryjoin=lambda: DevelopmentStatus.id == development_status_transitions.c.from_status_id,
        secondaryjoin=lambda: DevelopmentStatus.id == development_status_transitions.c.to_status_id,
        order_by=lambda: DevelopmentStatus.sequence,
    )

    def __repr__(self):
        return f"<DevelopmentStatus(id={self.id}, code='{self.status_code}', phase='{self.dev_phase}')>"

    @property
    def allowed_transition_ids(self) -> list:
        return [s.id for s in self.allowed_transitions]

    @property
    def estimated_completion(self) -> str:
        return format_estimated_duration(self.estimated_duration_days)


status_table_indexes(DevelopmentStatus, "development_statuses")
