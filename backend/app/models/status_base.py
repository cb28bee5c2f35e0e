"""
Shared columns for configurable status tables

Sales statuses and development statuses are both admin-maintained
configuration rows: soft-deleted, audited, ordered by ``sequence`` and
with at most one default row among the non-deleted ones.
"""
from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, and_
from sqlalchemy.sql import func

from app.core.status_config import DEFAULT_COLOR_CODE, get_color_name, get_css_class


class StatusDefinitionMixin:
    """Columns common to every status definition table"""

    id = Column(Integer, primary_key=True, index=True)

    description = Column(Text, nullable=True)
    color_code = Column(String(7), default=DEFAULT_COLOR_CODE, nullable=False)

    # Flags
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_default = Column(Boolean, default=False, nullable=False, index=True)

    # Display/workflow ordering; duplicates and gaps are allowed
    sequence = Column(Integer, default=1, nullable=False, index=True)

    # Audit
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=False), nullable=True)

    @property
    def color_name(self) -> str:
        return get_color_name(self.color_code)

    @property
    def css_class(self) -> str:
        return get_css_class(self.status_code)


def partial_unique_index(name: str, *expressions, where) -> Index:
    """Unique index that only covers rows matching ``where`` (PostgreSQL and SQLite)."""
    return Index(name, *expressions, unique=True, postgresql_where=where, sqlite_where=where)


def status_table_indexes(model, prefix: str) -> None:
    """
    Declare the uniqueness rules every status table shares:

    - status_code unique among non-deleted rows (codes are stored upper-case)
    - status_name unique among non-deleted rows, case-insensitively
    - at most one non-deleted default row
    """
    live = model.is_deleted.is_(False)
    partial_unique_index(f"uq_{prefix}_code_live", model.status_code, where=live)
    partial_unique_index(f"uq_{prefix}_name_live", func.lower(model.status_name), where=live)
    partial_unique_index(
        f"uq_{prefix}_single_default",
        model.is_default,
        where=and_(model.is_default.is_(True), live),
    )
