from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional

from app.models.user import RoleName


class UserUpdateRequest(BaseModel):
    name:       Optional[str] = None
    email:      Optional[EmailStr] = None
    role:       Optional[RoleName] = None
    phone:      Optional[str] = None
    department: Optional[str] = None
    language:   Optional[str] = None
    isActive:   Optional[bool] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip() if v else v


class UserStatusRequest(BaseModel):
    isActive: bool
