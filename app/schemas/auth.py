from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Optional

from app.config import settings
from app.models.user import RoleName


# ─── Helpers ──────────────────────────────────────────────────────────────────
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def validate_password_length(v: str) -> str:
    if len(v) < settings.MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


def strip_required(v: str, label: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{label} cannot be empty")
    return v.strip()


def strip_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    return v or None


# ─── Request Schemas ──────────────────────────────────────────────────────────
class RegisterRequest(BaseModel):
    name:       str
    email:      EmailStr
    password:   str
    role:       RoleName = RoleName.USER
    phone:      Optional[str] = None
    department: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return strip_required(v, "Name")

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password_length(v)

    @field_validator("phone", "department")
    @classmethod
    def clean_optional(cls, v):
        return strip_optional(v)


class LoginRequest(BaseModel):
    email:    EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ProfileUpdateRequest(BaseModel):
    name:       Optional[str] = None
    phone:      Optional[str] = None
    department: Optional[str] = None
    language:   Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip() if v else v

    @field_validator("language")
    @classmethod
    def check_language(cls, v):
        if v is not None and v not in ("ar", "en"):
            raise ValueError("Language must be 'ar' or 'en'")
        return v


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword:     str
    confirmPassword: str

    @field_validator("newPassword")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password_length(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.newPassword != self.confirmPassword:
            raise ValueError("Passwords do not match")
        return self
