"""
Plot model

Only the parts of a plot the status workflow needs: identity within a
project and the current sales/development status.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.status_base import partial_unique_index


class Plot(Base):
    __tablename__ = "plots"

    id = Column(Integer, primary_key=True, index=True)

    plot_no = Column(String(50), nullable=False)
    project_code = Column(String(50), nullable=False, index=True)
    plot_street = Column(String(100), nullable=True)

    sales_status_id = Column(Integer, ForeignKey("sales_statuses.id"), nullable=True, index=True)
    development_status_id = Column(Integer, ForeignKey("development_statuses.id"), nullable=True, index=True)

    # Audit
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=False), nullable=True)

    # Relationships
    sales_status = relationship("SalesStatus")
    development_status = relationship("DevelopmentStatus")

    def __repr__(self):
        return f"<Plot(id={self.id}, project='{self.project_code}', plot_no='{self.plot_no}')>"


partial_unique_index(
    "uq_plots_project_plot_no_live",
    Plot.project_code,
    func.lower(Plot.plot_no),
    where=Plot.is_deleted.is_(False),
)
