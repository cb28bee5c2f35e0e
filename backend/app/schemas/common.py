"""
Envelopes shared by every SocietyOps endpoint.

Successful calls return ``{"success": true, "data": ...}`` (plus
``pagination``/``summary`` for lists); failures return ``ErrorResponse``,
which is built by the handlers in ``app.main`` and declared here so it
shows up in the OpenAPI document.
"""
import math
from datetime import datetime
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

# Primary keys are 32-bit INTEGER columns on PostgreSQL
MAX_ID = 2_147_483_647

RecordId = Annotated[int, Field(ge=1, le=MAX_ID)]


class ErrorResponse(BaseModel):
    """
    Error envelope.

    ``error_code`` is one of VALIDATION_ERROR, BUSINESS_RULE_ERROR and
    INVALID_STATE (400), AUTHENTICATION_ERROR (401), PERMISSION_DENIED (403),
    NOT_FOUND (404), CONFLICT and DUPLICATE_ERROR (409), or DATABASE_ERROR
    and INTERNAL_ERROR (500).
    """
    success: bool = False
    error: str = Field(..., description="Message safe to show to an operator")
    error_code: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Cannot transition from Available to Sold",
                "error_code": "INVALID_STATE",
                "details": {"current_state": "available", "allowed_states": [2]},
                "timestamp": "2026-10-19T09:15:00Z",
            }
        }


class PaginationParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int = Field(..., description="Rows matching the filters, across all pages")
    pages: int

    @classmethod
    def build(cls, params: PaginationParams, total: int) -> "PaginationMeta":
        return cls(page=params.page, limit=params.limit, total=total, pages=math.ceil(total / params.limit))


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ListResponse(BaseModel, Generic[T]):
    """Page of records; ``summary`` counts only the rows on this page."""
    success: bool = True
    data: List[T]
    pagination: PaginationMeta
    summary: Optional[Dict[str, Any]] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class StatusResponse(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
