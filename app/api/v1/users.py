from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user, get_admin_user
from app.models.user import User, RoleName
from app.schemas.user import UserUpdateRequest, UserStatusRequest
from app.schemas.common import success_response, paginated_response
from app.services.user_service import user_service

router = APIRouter(prefix="/users")


# GET /users — Admin only
@router.get("", summary="List all users (paginated)")
def list_users(
    page:     int                = Query(1,    ge=1),
    limit:    int                = Query(20,   ge=1, le=100),
    search:   Optional[str]      = Query(None, description="Search by name or email"),
    role:     Optional[RoleName] = Query(None),
    isActive: Optional[bool]     = Query(None),
    db:       Session            = Depends(get_db),
    _:        User               = Depends(get_admin_user),
):
    data, total = user_service.list_users(db, page, limit, search, role, isActive)
    return paginated_response("Users retrieved successfully", data, total, page, limit)


# GET /users/technicians — Any authenticated user (assignment dropdowns)
@router.get("/technicians", summary="List active technicians")
def list_technicians(
    db: Session = Depends(get_db),
    _:  User    = Depends(get_current_user),
):
    return success_response("Technicians retrieved", user_service.list_technicians(db))


# GET /users/{id} — Admin only
@router.get("/{user_id}", summary="Get user by ID")
def get_user(
    user_id: int,
    db:      Session = Depends(get_db),
    _:       User    = Depends(get_admin_user),
):
    return success_response("User retrieved", user_service.get_user(db, user_id))


# PUT /users/{id} — Admin only
@router.put("/{user_id}", summary="Update user")
def update_user(
    user_id: int,
    body:    UserUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = user_service.update_user(db, user_id, body, current_user.id)
    return success_response("User updated successfully", data)


# PATCH /users/{id}/status — Admin only
@router.patch("/{user_id}/status", summary="Activate or deactivate a user")
def set_status(
    user_id: int,
    body:    UserStatusRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = user_service.set_active(db, user_id, body.isActive, current_user.id)
    status_str = "activated" if data["isActive"] else "deactivated"
    return success_response(f"User {status_str} successfully", data)


# DELETE /users/{id} — Admin only
@router.delete("/{user_id}", status_code=status.HTTP_200_OK, summary="Delete user")
def delete_user(
    user_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    user_service.delete_user(db, user_id, current_user.id)
    return success_response("User deleted successfully", None)
