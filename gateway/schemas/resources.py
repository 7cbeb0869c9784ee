### Description ###
# CRM Gateway - Multi-tenant External API
# - CRM Resource Schemas -
# Date: 10/17/2026
# Python: 3.11
####################

"""
CRM Resource Schemas

Request bodies accepted by POST (Create) and PUT/PATCH (Update) on /v1.
Unknown fields are rejected; id, tenant_id and timestamps are stripped
by the resource handler before validation.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]

TaskStatus = Literal["pending", "in_progress", "completed"]


class ResourceBody(BaseModel):
    """Base for resource bodies - unknown fields are a 400"""

    model_config = ConfigDict(extra="forbid")


# ========================================
# Contacts
# ========================================

class ContactCreate(ResourceBody):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    company: Optional[str] = Field(None, max_length=100)
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class ContactUpdate(ResourceBody):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    company: Optional[str] = Field(None, max_length=100)
    custom_fields: Optional[dict[str, Any]] = None


# ========================================
# Products
# ========================================

class ProductCreate(ResourceBody):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    stock_quantity: int = 0
    min_stock_level: int = Field(0, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    is_active: bool = True
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class ProductUpdate(ResourceBody):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = None
    min_stock_level: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    custom_fields: Optional[dict[str, Any]] = None


# ========================================
# Cards
# ========================================

class CardCreate(ResourceBody):
    title: str = Field(..., min_length=1, max_length=200)
    value: float = 0
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    contact_id: Optional[str] = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class CardUpdate(ResourceBody):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    value: Optional[float] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    contact_id: Optional[str] = None
    custom_fields: Optional[dict[str, Any]] = None


# ========================================
# Appointments
# ========================================

class AppointmentCreate(ResourceBody):
    title: str = Field(..., min_length=1, max_length=200)
    start_time: UtcDatetime
    end_time: UtcDatetime
    location: Optional[str] = Field(None, max_length=255)
    status: str = Field("scheduled", min_length=1, max_length=20)
    contact_id: Optional[str] = None
    card_id: Optional[str] = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class AppointmentUpdate(ResourceBody):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    location: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = Field(None, min_length=1, max_length=20)
    contact_id: Optional[str] = None
    card_id: Optional[str] = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


# ========================================
# Tasks
# ========================================

class TaskCreate(ResourceBody):
    title: str = Field(..., min_length=1, max_length=200)
    status: TaskStatus = "pending"
    due_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None
    assigned_to: Optional[str] = Field(None, max_length=36)
    contact_id: Optional[str] = None
    card_id: Optional[str] = None


class TaskUpdate(ResourceBody):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[TaskStatus] = None
    due_date: Optional[UtcDatetime] = None
    notes: Optional[str] = None
    assigned_to: Optional[str] = Field(None, max_length=36)
    contact_id: Optional[str] = None
    card_id: Optional[str] = None
