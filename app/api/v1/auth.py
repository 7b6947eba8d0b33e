from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    RegisterRequest, LoginRequest, ProfileUpdateRequest, ChangePasswordRequest,
)
from app.schemas.common import SuccessResponse, success_response
from app.services.auth_service import auth_service, serialize_user

router = APIRouter(prefix="/auth")


# ─── POST /auth/register ──────────────────────────────────────────────────────
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    response_model=SuccessResponse,
)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new user and return a session token.
    - Email must be unique.
    - Password minimum 6 characters.
    - Role defaults to `user`.
    """
    result = auth_service.register(db, data)
    return success_response("Account created successfully", result)


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive a session token",
    response_model=SuccessResponse,
)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Returns a Bearer token valid for 30 days."""
    result = auth_service.login(db, data)
    return success_response("Login successful", result)


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get("/me", summary="Get current authenticated user", response_model=SuccessResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return success_response("User profile retrieved", serialize_user(current_user))


# ─── PUT /auth/profile ────────────────────────────────────────────────────────
@router.put("/profile", summary="Update own profile", response_model=SuccessResponse)
def update_profile(
    data: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = auth_service.update_profile(db, data, current_user)
    return success_response("Profile updated successfully", result)


# ─── PATCH /auth/change-password ──────────────────────────────────────────────
@router.patch(
    "/change-password",
    summary="Change password (requires current password)",
    response_model=SuccessResponse,
)
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    auth_service.change_password(db, data, current_user)
    return success_response("Password changed successfully.", None)
