"""
Development Status Pydantic Schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.core.status_config import COLOR_CODE_PATTERN, DEFAULT_COLOR_CODE, DevCategory, DevPhase
from app.schemas.common import RecordId
from app.schemas.sales_status import ValidationRule


class DevelopmentStatusCreate(BaseModel):
    """Create a new development status"""
    status_name: str = Field(..., min_length=2, max_length=100)
    status_code: str = Field(..., min_length=2, max_length=20)
    dev_category: DevCategory
    dev_phase: DevPhase
    description: Optional[str] = Field(None, max_length=500)
    sequence: int = Field(1, ge=1)
    is_active: bool = True
    is_default: bool = False
    color_code: str = Field(DEFAULT_COLOR_CODE, pattern=COLOR_CODE_PATTERN)
    icon: Optional[str] = Field(None, max_length=50)
    percentage_complete: int = Field(0, ge=0, le=100)
    requires_documentation: bool = False
    estimated_duration_days: int = Field(0, ge=0)
    allowed_transitions: List[RecordId] = Field(default_factory=list, description="Ids of statuses this one may move to")

    @field_validator("status_name", "description", "icon", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("status_code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class DevelopmentStatusUpdate(BaseModel):
    """Update an existing development status (all fields optional)"""
    status_name: Optional[str] = Field(None, min_length=2, max_length=100)
    status_code: Optional[str] = Field(None, min_length=2, max_length=20)
    dev_category: Optional[DevCategory] = None
    dev_phase: Optional[DevPhase] = None
    description: Optional[str] = Field(None, max_length=500)
    sequence: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    color_code: Optional[str] = Field(None, pattern=COLOR_CODE_PATTERN)
    icon: Optional[str] = Field(None, max_length=50)
    percentage_complete: Optional[int] = Field(None, ge=0, le=100)
    requires_documentation: Optional[bool] = None
    estimated_duration_days: Optional[int] = Field(None, ge=0)
    allowed_transitions: Optional[List[RecordId]] = None

    @field_validator("status_name", "description", "icon", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("status_code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class DevTransitionRequest(BaseModel):
    current_status_id: Any = Field(
        ..., validation_alias=AliasChoices("current_status_id", "currentStatusId")
    )
    target_status_id: Any = Field(
        ..., validation_alias=AliasChoices("target_status_id", "targetStatusId")
    )
    fields: Optional[Dict[str, Any]] = None


class DevBulkUpdateRequest(BaseModel):
    status_ids: List[RecordId] = Field(..., min_length=1)
    field: Literal["is_active", "requires_documentation"]
    value: bool


class ProgressRequest(BaseModel):
    status_ids: List[RecordId] = Field(..., min_length=1)


# ============================================================================
# Responses
# ============================================================================

class DevelopmentStatusRef(BaseModel):
    """Short form used inside allowed_transitions"""
    id: int
    status_name: str
    status_code: str
    dev_category: str
    dev_phase: str
    sequence: int

    class Config:
        from_attributes = True


class DevelopmentStatusResponse(BaseModel):
    id: int
    status_name: str
    status_code: str
    dev_category: str
    dev_phase: str
    description: Optional[str] = None
    sequence: int
    is_active: bool
    is_default: bool
    color_code: str
    icon: Optional[str] = None
    percentage_complete: int
    requires_documentation: bool
    estimated_duration_days: int
    allowed_transitions: List[DevelopmentStatusRef] = []

    # Derived
    color_name: Optional[str] = None
    css_class: str
    estimated_completion: str

    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DevTransitionResult(BaseModel):
    is_valid: bool
    message: str
    validation_rules: List[ValidationRule] = []
    missing_fields: List[ValidationRule] = []
    estimated_days: Optional[int] = None


class PhaseWorkflow(BaseModel):
    phase: str
    statuses: List[DevelopmentStatusResponse]
    phase_progress: int
    total_statuses: int
    estimated_duration: int


class PhaseProgress(PhaseWorkflow):
    phase_name: str
    completed_statuses: int


class TimelineEntry(BaseModel):
    status: DevelopmentStatusResponse
    start_date: datetime
    end_date: datetime
    actual_end_date: Optional[datetime] = None
    is_completed: bool
    duration_days: int


class ProgressReport(BaseModel):
    current_status: Optional[DevelopmentStatusResponse] = None
    next_statuses: List[DevelopmentStatusResponse] = []
    overall_progress: int = 0
    timeline: List[TimelineEntry] = []


class EstimatedCompletion(BaseModel):
    estimated_days: int
    formatted_text: str


class DevelopmentStatusSummary(BaseModel):
    total_statuses: int
    active_statuses: int
    by_category: Dict[str, int]
    by_phase: Dict[str, int]
    average_percentage: float


class CategoryCount(BaseModel):
    total: int
    active: int
    avg_percentage: float


class PhaseCount(CategoryCount):
    total_duration: int


class DevelopmentStatusStatistics(BaseModel):
    total_statuses: int
    active_statuses: int
    documentation_required_count: int
    avg_percentage_complete: float
    total_estimated_duration: int
    by_category: Dict[str, CategoryCount]
    by_phase: Dict[str, PhaseCount]
