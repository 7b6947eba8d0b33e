from pydantic import BaseModel, Field, field_validator
from typing import Optional
from decimal import Decimal

from app.models.maintenance_request import MaintenanceType, Priority, RequestStatus


def _required_text(v: str, label: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{label} cannot be empty")
    return v.strip()


class MaintenanceCreateRequest(BaseModel):
    title:       str = Field(max_length=200)
    description: str
    type:        MaintenanceType
    category:    str
    priority:    Priority = Priority.MEDIUM
    location:    Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v): return _required_text(v, "Title")

    @field_validator("description")
    @classmethod
    def check_desc(cls, v): return _required_text(v, "Description")

    @field_validator("category")
    @classmethod
    def check_category(cls, v): return _required_text(v, "Category")

    @field_validator("location")
    @classmethod
    def check_location(cls, v):
        if v is None: return v
        return v.strip() or None


class MaintenanceUpdateRequest(BaseModel):
    title:          Optional[str] = Field(default=None, max_length=200)
    description:    Optional[str] = None
    priority:       Optional[Priority] = None
    status:         Optional[RequestStatus] = None
    assignedToId:   Optional[int] = None
    location:       Optional[str] = None
    estimatedHours: Optional[Decimal] = None
    actualHours:    Optional[Decimal] = None

    @field_validator("title", "description")
    @classmethod
    def check_text(cls, v):
        if v is not None and not v.strip(): raise ValueError("Value cannot be empty")
        return v.strip() if v else v

    @field_validator("estimatedHours", "actualHours")
    @classmethod
    def check_hours(cls, v):
        if v is not None and v < 0: raise ValueError("Hours cannot be negative")
        return v


class CommentCreateRequest(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def check_text(cls, v): return _required_text(v, "Comment text")


class RequiredPartCreateRequest(BaseModel):
    partName:         str
    quantity:         int
    availableInStock: bool = False

    @field_validator("partName")
    @classmethod
    def check_name(cls, v): return _required_text(v, "Part name")

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v):
        if v < 1: raise ValueError("Quantity must be at least 1")
        return v
