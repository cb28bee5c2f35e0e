"""
Portal accounts, read-only from this service's point of view.

The identity service owns signup and passwords; here a row only answers
"who sent this token" and "may they change statuses".
"""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.db.base import Base

ADMIN_ROLES = ("admin", "super_admin")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))

    # member-facing roles are "user" and "moderator"; ADMIN_ROLES manage workflows
    role = Column(String(20), nullable=False, default="user", index=True)
    status = Column(String(20), nullable=False, default="active")  # active | inactive | suspended

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self):
        return f"<User {self.id} {self.email} ({self.role})>"
