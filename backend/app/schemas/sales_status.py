"""
Sales Status Pydantic Schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.core.status_config import COLOR_CODE_PATTERN, DEFAULT_COLOR_CODE, SalesStatusType
from app.schemas.common import RecordId


def _clean_code(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    return v.strip().upper()


def _clean_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    return v.strip()


# ============================================================================
# Requests
# ============================================================================

class SalesStatusBase(BaseModel):
    """Base sales status fields"""
    status_name: str = Field(..., min_length=2, max_length=50, description="Display name")
    status_code: str = Field(..., min_length=2, max_length=20, description="Short code, stored upper-case")
    status_type: SalesStatusType
    description: Optional[str] = Field(None, max_length=500)
    color_code: str = Field(DEFAULT_COLOR_CODE, pattern=COLOR_CODE_PATTERN)
    is_active: bool = True
    is_default: bool = False
    sequence: int = Field(1, ge=1, description="Workflow/display order")
    allows_sale: bool = False
    requires_approval: bool = False
    notification_template: Optional[str] = Field(None, max_length=1000)

    @field_validator("status_name", "description", "notification_template", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _clean_text(v)

    @field_validator("status_code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return _clean_code(v)


class SalesStatusCreate(SalesStatusBase):
    """Create a new sales status"""
    pass


class SalesStatusUpdate(BaseModel):
    """Update an existing sales status (all fields optional)"""
    status_name: Optional[str] = Field(None, min_length=2, max_length=50)
    status_code: Optional[str] = Field(None, min_length=2, max_length=20)
    status_type: Optional[SalesStatusType] = None
    description: Optional[str] = Field(None, max_length=500)
    color_code: Optional[str] = Field(None, pattern=COLOR_CODE_PATTERN)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    sequence: Optional[int] = Field(None, ge=1)
    allows_sale: Optional[bool] = None
    requires_approval: Optional[bool] = None
    notification_template: Optional[str] = Field(None, max_length=1000)

    @field_validator("status_name", "description", "notification_template", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _clean_text(v)

    @field_validator("status_code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return _clean_code(v)


class StatusTransitionRequest(BaseModel):
    """
    Validate a move from one status to another.

    Ids are looked up as given; anything that does not resolve to a live
    status yields an invalid result rather than an error. When ``fields``
    is supplied, the target type's required fields are checked too.
    """
    current_status_id: Any = Field(
        ..., validation_alias=AliasChoices("current_status_id", "currentStatusId")
    )
    target_status_id: Any = Field(
        ..., validation_alias=AliasChoices("target_status_id", "targetStatusId")
    )
    fields: Optional[Dict[str, Any]] = None


class SequenceUpdate(BaseModel):
    # Range is enforced by the service so the error is a business error
    sequence: int


class StatusOrder(BaseModel):
    id: RecordId
    sequence: int = Field(..., ge=1)


class ReorderRequest(BaseModel):
    status_orders: List[StatusOrder] = Field(..., min_length=1)


class SalesBulkUpdateRequest(BaseModel):
    status_ids: List[RecordId] = Field(..., min_length=1)
    field: Literal["is_active", "allows_sale", "requires_approval"]
    value: bool


# ============================================================================
# Responses
# ============================================================================

class SalesStatusResponse(BaseModel):
    """Full sales status with derived presentation fields"""
    id: int
    status_name: str
    status_code: str
    status_type: str
    description: Optional[str] = None
    color_code: str
    is_active: bool
    is_default: bool
    sequence: int
    allows_sale: bool
    requires_approval: bool
    notification_template: Optional[str] = None

    # Derived
    allowed_transitions: List[str] = []
    badge_variant: str
    color_name: Optional[str] = None
    css_class: str

    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ValidationRule(BaseModel):
    field: str
    required: bool
    message: str


class TransitionValidationResult(BaseModel):
    is_valid: bool
    message: str
    allowed_transitions: List[str] = []
    validation_rules: List[ValidationRule] = []
    missing_fields: List[ValidationRule] = []


class SalesStatusWorkflow(BaseModel):
    """Current status, the types it may move to and the live statuses of those types"""
    current_status: SalesStatusResponse
    allowed_transitions: List[str]
    allowed_statuses: List[SalesStatusResponse]
    validation_rules: List[ValidationRule]


class SalesStatusSummary(BaseModel):
    """Per-page counts returned with list responses"""
    total_statuses: int
    active_statuses: int
    sales_allowed_count: int
    by_type: Dict[str, int]


class TypeCount(BaseModel):
    total: int
    active: int


class SalesStatusStatistics(BaseModel):
    total_statuses: int
    active_statuses: int
    sales_allowed_count: int
    approval_required_count: int
    by_type: Dict[str, TypeCount]


class BulkUpdateResult(BaseModel):
    matched: int
    modified: int
