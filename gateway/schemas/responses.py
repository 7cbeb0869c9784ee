### Description ###
# CRM Gateway - Multi-tenant External API
# - Common Response Schemas -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Common Response Schemas

Pydantic models for the standard {data, meta} envelope and error bodies.
"""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from gateway.utils import utcnow

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Cursor pagination metadata"""

    total: int = Field(ge=0, description="Number of rows matching the filters")
    limit: int = Field(ge=1, le=100, description="Page size used")
    next_cursor: Optional[str] = Field(None, description="created_at of the last row, null on the last page")


class ResponseMeta(BaseModel):
    """Envelope metadata"""

    timestamp: datetime = Field(default_factory=utcnow)
    pagination: Optional[PaginationMeta] = None


class Envelope(BaseModel, Generic[T]):
    """Standard API response wrapper"""

    data: T
    meta: ResponseMeta = Field(default_factory=ResponseMeta)


def envelope(data: Any, pagination: Optional[PaginationMeta] = None) -> dict:
    """
    Build a JSON-ready envelope.

    meta.pagination is omitted entirely for single-object responses; when
    present, next_cursor is always included (null on the last page).
    """
    meta = ResponseMeta().model_dump(mode="json", exclude={"pagination"})
    if pagination is not None:
        meta["pagination"] = pagination.model_dump(mode="json")
    return {
        "data": data,
        "meta": meta,
    }


class ErrorDetail(BaseModel):
    """Error detail for validation errors"""

    field: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response"""

    error: str
    message: Optional[str] = None
    details: Optional[List[ErrorDetail]] = None


class HealthResponse(BaseModel):
    """Health check response"""

    status: str = "healthy"
    version: str
    database_connected: bool
