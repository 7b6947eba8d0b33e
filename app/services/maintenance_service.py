import logging

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.maintenance_request import (
    MaintenanceRequest, MaintenanceType, Priority, RequestStatus, RequestSource,
)
from app.models.comment import RequestComment
from app.models.required_part import RequiredPart
from app.models.user import User, RoleName
from app.schemas.maintenance import (
    MaintenanceCreateRequest, MaintenanceUpdateRequest,
    CommentCreateRequest, RequiredPartCreateRequest,
)
from app.services import lifecycle
from app.services.request_policy import request_policy
from app.utils.audit import log_action
from app.utils.email import send_assignment_email, send_status_update_email
from app.utils.exceptions import NotFoundException, ForbiddenException, ValidationException
from app.utils.storage import save_images

logger = logging.getLogger(__name__)

ENTITY = "MaintenanceRequest"


def _user_ref(u: User | None) -> dict | None:
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email, "role": RoleName(u.role).value}


def _hours(v) -> float | None:
    return float(v) if v is not None else None


def _serialize_comment(c: RequestComment) -> dict:
    return {
        "id":        c.id,
        "text":      c.text,
        "createdBy": _user_ref(c.created_by),
        "createdAt": c.createdAt.isoformat(),
    }


def _serialize_part(p: RequiredPart) -> dict:
    return {
        "id":               p.id,
        "partName":         p.partName,
        "quantity":         p.quantity,
        "availableInStock": p.availableInStock,
        "requestedAt":      p.requestedAt.isoformat(),
    }


def serialize_request(m: MaintenanceRequest, detail: bool = False) -> dict:
    data = {
        "id":              m.id,
        "title":           m.title,
        "description":     m.description,
        "type":            MaintenanceType(m.type).value,
        "category":        m.category,
        "priority":        Priority(m.priority).value,
        "status":          RequestStatus(m.status).value,
        "location":        m.location,
        "createdBy":       _user_ref(m.created_by),
        "assignedTo":      _user_ref(m.assigned_to),
        "images":          list(m.images or []),
        "completedAt":     m.completedAt.isoformat() if m.completedAt else None,
        "estimatedHours":  _hours(m.estimatedHours),
        "actualHours":     _hours(m.actualHours),
        "externalId":      m.externalId,
        "source":          RequestSource(m.source).value,
        "isTerminal":      lifecycle.is_terminal(m.status),
        "ageInDays":       lifecycle.age_in_days(m),
        "completionHours": lifecycle.completion_hours(m),
        "createdAt":       m.createdAt.isoformat() if m.createdAt else None,
        "updatedAt":       m.updatedAt.isoformat() if m.updatedAt else None,
    }
    if detail:
        data["comments"] = [_serialize_comment(c) for c in m.comments]
        data["requiredParts"] = [_serialize_part(p) for p in m.required_parts]
    return data


class MaintenanceService:

    # ─── Lookups ──────────────────────────────────────────────────────────────
    def _get(self, db: Session, request_id: int) -> MaintenanceRequest:
        m = db.query(MaintenanceRequest).filter(MaintenanceRequest.id == request_id).first()
        if not m:
            raise NotFoundException("Maintenance request")
        return m

    def _get_visible(self, db: Session, request_id: int, user: User) -> MaintenanceRequest:
        """Invisible requests are reported exactly like missing ones."""
        m = self._get(db, request_id)
        if not request_policy.can_view(user, m):
            raise NotFoundException("Maintenance request")
        return m

    def _resolve_assignee(self, db: Session, user_id: int) -> User:
        assignee = db.query(User).filter(User.id == user_id).first()
        if (not assignee or not assignee.isActive
                or assignee.role not in (RoleName.TECHNICIAN, RoleName.ADMIN)):
            raise ValidationException("Assignee must be an active technician or admin", field="assignedToId")
        return assignee

    # ─── List / Get ───────────────────────────────────────────────────────────
    def list_requests(
        self, db: Session, user: User,
        page: int, limit: int,
        status: RequestStatus | None = None,
        type_: MaintenanceType | None = None,
        priority: Priority | None = None,
    ) -> tuple[list[dict], int]:
        q = request_policy.visible_to(db.query(MaintenanceRequest), user)

        if status:   q = q.filter(MaintenanceRequest.status == status)
        if type_:    q = q.filter(MaintenanceRequest.type == type_)
        if priority: q = q.filter(MaintenanceRequest.priority == priority)

        total = q.count()
        items = q.order_by(MaintenanceRequest.createdAt.desc(), MaintenanceRequest.id.desc())\
                 .offset((page - 1) * limit).limit(limit).all()
        return [serialize_request(m) for m in items], total

    def get_request(self, db: Session, request_id: int, user: User) -> dict:
        return serialize_request(self._get_visible(db, request_id, user), detail=True)

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_request(
        self, db: Session, data: MaintenanceCreateRequest, creator: User,
        images: list[str] | None = None,
    ) -> dict:
        m = MaintenanceRequest(
            title=data.title,
            description=data.description,
            type=data.type,
            category=data.category,
            priority=data.priority,
            status=RequestStatus.NEW,
            location=data.location,
            createdById=creator.id,
            images=list(images or []),
            source=RequestSource.INTERNAL,
        )
        db.add(m)
        db.flush()
        log_action(db, creator.id, "CREATE", ENTITY, m.id,
                   f"Request '{m.title}' created by {creator.name}")
        db.commit()
        db.refresh(m)
        logger.info(f"Maintenance request #{m.id} created by user #{creator.id}")
        return serialize_request(m, detail=True)

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_request(
        self, db: Session, request_id: int, data: MaintenanceUpdateRequest, user: User,
        background_tasks: BackgroundTasks | None = None,
    ) -> dict:
        m = self._get(db, request_id)
        if not request_policy.can_update(user, m):
            raise ForbiddenException("You do not have permission to update this request")

        changes = data.model_dump(exclude_unset=True)

        new_assignee = None
        if "assignedToId" in changes:
            if changes["assignedToId"] is None:
                m.assignedToId = None
            elif changes["assignedToId"] != m.assignedToId:
                new_assignee = self._resolve_assignee(db, changes["assignedToId"])
                m.assignedToId = new_assignee.id

        for field in ("title", "description", "priority", "location", "estimatedHours", "actualHours"):
            if changes.get(field) is not None:
                setattr(m, field, changes[field])

        old_status = None
        if changes.get("status") is not None:
            old_status = lifecycle.apply_status(m, changes["status"])

        if old_status is not None:
            log_action(db, user.id, "STATUS_CHANGE", ENTITY, m.id,
                       f"Request #{m.id}: {old_status.value} -> {RequestStatus(m.status).value}")
        else:
            log_action(db, user.id, "UPDATE", ENTITY, m.id, f"Updated request #{m.id}")
        db.commit()
        db.refresh(m)

        if background_tasks is not None:
            if new_assignee is not None:
                background_tasks.add_task(
                    send_assignment_email, new_assignee.email, m.id, m.title, m.description,
                    MaintenanceType(m.type).value, Priority(m.priority).value, m.location,
                )
            if old_status is not None:
                background_tasks.add_task(
                    send_status_update_email, m.created_by.email, m.id, m.title,
                    old_status.value, RequestStatus(m.status).value,
                )
        return serialize_request(m, detail=True)

    # ─── Comments ─────────────────────────────────────────────────────────────
    def add_comment(self, db: Session, request_id: int, data: CommentCreateRequest, user: User) -> list[dict]:
        m = self._get(db, request_id)
        if not request_policy.can_comment(user, m):
            raise ForbiddenException("You do not have permission to comment on this request")

        m.comments.append(RequestComment(text=data.text, createdById=user.id))
        log_action(db, user.id, "COMMENT", ENTITY, m.id, f"Comment added to request #{m.id}")
        db.commit()
        db.refresh(m)
        return [_serialize_comment(c) for c in m.comments]

    # ─── Required Parts ───────────────────────────────────────────────────────
    def add_required_part(
        self, db: Session, request_id: int, data: RequiredPartCreateRequest, user: User,
    ) -> list[dict]:
        m = self._get(db, request_id)
        if not request_policy.can_add_part(user, m):
            raise ForbiddenException("You do not have permission to add parts to this request")

        m.required_parts.append(RequiredPart(
            partName=data.partName,
            quantity=data.quantity,
            availableInStock=data.availableInStock,
        ))
        log_action(db, user.id, "ADD_PART", ENTITY, m.id,
                   f"Part '{data.partName}' x{data.quantity} requested for #{m.id}")
        db.commit()
        db.refresh(m)
        return [_serialize_part(p) for p in m.required_parts]

    # ─── Images ───────────────────────────────────────────────────────────────
    def attach_images(self, db: Session, request_id: int, files: list[UploadFile], user: User) -> dict:
        m = self._get_visible(db, request_id, user)
        if not request_policy.can_attach_images(user, m):
            raise ForbiddenException("You do not have permission to attach images to this request")
        if not files:
            raise ValidationException("At least one image is required", field="images")

        stored = save_images(files, existing_count=len(m.images or []))
        m.images = [*(m.images or []), *stored]
        log_action(db, user.id, "ATTACH_IMAGES", ENTITY, m.id, f"{len(stored)} image(s) attached")
        db.commit()
        db.refresh(m)
        return serialize_request(m, detail=True)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_request(self, db: Session, request_id: int, user: User) -> None:
        m = self._get(db, request_id)
        if not request_policy.can_delete(user, m):
            raise ForbiddenException("Only admins can delete maintenance requests")
        log_action(db, user.id, "DELETE", ENTITY, request_id, f"Deleted request #{request_id}")
        db.delete(m)
        db.commit()

    # ─── Statistics ───────────────────────────────────────────────────────────
    def get_stats(self, db: Session, user: User) -> dict:
        q = request_policy.visible_to(db.query(MaintenanceRequest), user)

        by_status = {
            RequestStatus(status): count
            for status, count in q.with_entities(
                MaintenanceRequest.status, func.count(MaintenanceRequest.id)
            ).group_by(MaintenanceRequest.status).all()
        }
        by_type = q.with_entities(
            MaintenanceRequest.type, func.count(MaintenanceRequest.id)
        ).group_by(MaintenanceRequest.type).all()

        return {
            "total":      sum(by_status.values()),
            "new":        by_status.get(RequestStatus.NEW, 0),
            "inProgress": by_status.get(RequestStatus.IN_PROGRESS, 0),
            "completed":  by_status.get(RequestStatus.COMPLETED, 0),
            "cancelled":  by_status.get(RequestStatus.CANCELLED, 0),
            "typeStats":  sorted(
                ({"type": MaintenanceType(t).value, "count": c} for t, c in by_type),
                key=lambda x: (-x["count"], x["type"]),
            ),
        }


maintenance_service = MaintenanceService()
