from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user, get_staff_user, get_admin_user
from app.models.maintenance_request import MaintenanceType, Priority, RequestStatus
from app.models.user import User
from app.schemas.maintenance import (
    MaintenanceCreateRequest, MaintenanceUpdateRequest,
    CommentCreateRequest, RequiredPartCreateRequest,
)
from app.schemas.common import success_response, paginated_response
from app.services.maintenance_service import maintenance_service
from app.utils.storage import save_images

router = APIRouter(prefix="/maintenance")


@router.post("", status_code=status.HTTP_201_CREATED,
             summary="Create maintenance request (multipart, up to 5 images)")
def create_request(
    title:        str                        = Form(...),
    description:  str                        = Form(...),
    type_:        str                        = Form(..., alias="type"),
    category:     str                        = Form(...),
    priority:     Optional[str]              = Form(None),
    location:     Optional[str]              = Form(None),
    images:       Optional[list[UploadFile]] = File(None),
    db:           Session                    = Depends(get_db),
    current_user: User                       = Depends(get_current_user),
):
    fields = {"title": title, "description": description, "type": type_, "category": category}
    if priority is not None: fields["priority"] = priority
    if location is not None: fields["location"] = location
    body = MaintenanceCreateRequest(**fields)

    stored = save_images(images) if images else []
    data = maintenance_service.create_request(db, body, current_user, images=stored)
    return success_response("Maintenance request created successfully", data)


@router.get("", summary="List visible maintenance requests")
def list_requests(
    page:     int                       = Query(1, ge=1),
    limit:    int                       = Query(10, ge=1, le=100),
    status_:  Optional[RequestStatus]   = Query(None, alias="status"),
    type_:    Optional[MaintenanceType] = Query(None, alias="type"),
    priority: Optional[Priority]        = Query(None),
    db:       Session                   = Depends(get_db),
    current_user: User                  = Depends(get_current_user),
):
    """Admins see every request; everyone else sees what they created or are assigned to."""
    data, total = maintenance_service.list_requests(
        db, current_user, page, limit, status_, type_, priority,
    )
    return paginated_response("Maintenance requests retrieved", data, total, page, limit)


@router.get("/stats/overview", summary="Request counts by status and type")
def stats_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response("Statistics retrieved", maintenance_service.get_stats(db, current_user))


@router.get("/{request_id}", summary="Get maintenance request")
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response("Maintenance request retrieved",
                            maintenance_service.get_request(db, request_id, current_user))


@router.put("/{request_id}", summary="Update maintenance request (Admin / assigned technician)")
def update_request(
    request_id: int,
    body: MaintenanceUpdateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user),
):
    data = maintenance_service.update_request(db, request_id, body, current_user, background_tasks)
    return success_response("Maintenance request updated successfully", data)


@router.delete("/{request_id}", summary="Delete maintenance request (Admin)")
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    maintenance_service.delete_request(db, request_id, current_user)
    return success_response("Maintenance request deleted", None)


@router.post("/{request_id}/comments", status_code=status.HTTP_201_CREATED, summary="Add comment")
def add_comment(
    request_id: int,
    body: CommentCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comments = maintenance_service.add_comment(db, request_id, body, current_user)
    return success_response("Comment added successfully", {"comments": comments})


@router.post("/{request_id}/required-parts", status_code=status.HTTP_201_CREATED,
             summary="Add required part (Admin / assigned technician)")
def add_required_part(
    request_id: int,
    body: RequiredPartCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user),
):
    parts = maintenance_service.add_required_part(db, request_id, body, current_user)
    return success_response("Required part added successfully", {"requiredParts": parts})


@router.post("/{request_id}/images", status_code=status.HTTP_201_CREATED,
             summary="Upload images (max 5 per request, 5 MB each)")
def upload_images(
    request_id: int,
    images: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = maintenance_service.attach_images(db, request_id, images, current_user)
    return success_response("Images uploaded successfully", data)
