"""Database models"""
from app.models.user import User
from app.models.sales_status import SalesStatus
from app.models.development_status import DevelopmentStatus, development_status_transitions
from app.models.plot import Plot

__all__ = [
    # Accounts
    "User",
    # Status definitions
    "SalesStatus",
    "DevelopmentStatus",
    "development_status_transitions",
    # Plots
    "Plot",
]
