"""
Plot Pydantic Schemas
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from app.schemas.common import RecordId
from app.schemas.development_status import DevelopmentStatusRef


class PlotCreate(BaseModel):
    plot_no: str = Field(..., min_length=1, max_length=50)
    project_code: str = Field(..., min_length=1, max_length=50)
    plot_street: Optional[str] = Field(None, max_length=100)
    sales_status_id: Optional[RecordId] = Field(None, description="Defaults to the default sales status")
    development_status_id: Optional[RecordId] = Field(None, description="Defaults to the default development status")


class PlotSalesStatusChange(BaseModel):
    """Move a plot to another sales status; ``fields`` feeds the target's validation rules"""
    target_status_id: RecordId
    fields: Dict[str, Any] = Field(default_factory=dict)


class SalesStatusRef(BaseModel):
    id: int
    status_name: str
    status_code: str
    status_type: str

    class Config:
        from_attributes = True


class PlotResponse(BaseModel):
    id: int
    plot_no: str
    project_code: str
    plot_street: Optional[str] = None
    sales_status_id: Optional[int] = None
    development_status_id: Optional[int] = None
    sales_status: Optional[SalesStatusRef] = None
    development_status: Optional[DevelopmentStatusRef] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
