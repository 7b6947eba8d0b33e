from sqlalchemy.orm import Session
from sqlalchemy import or_

from app.models.user import User, RoleName
from app.models.maintenance_request import MaintenanceRequest
from app.models.comment import RequestComment
from app.schemas.user import UserUpdateRequest
from app.services.auth_service import serialize_user
from app.utils.audit import log_action
from app.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ForbiddenException, UserInUseException,
)


class UserService:

    def _get(self, db: Session, user_id: int) -> User:
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")
        return u

    # ─── List ─────────────────────────────────────────────────────────────────
    def list_users(
        self, db: Session,
        page: int, limit: int,
        search: str | None,
        role: RoleName | None,
        is_active: bool | None,
    ) -> tuple[list[dict], int]:
        q = db.query(User)

        if search:
            kw = f"%{search}%"
            q = q.filter(or_(User.name.ilike(kw), User.email.ilike(kw)))
        if role is not None:
            q = q.filter(User.role == role)
        if is_active is not None:
            q = q.filter(User.isActive == is_active)

        total = q.count()
        users = q.order_by(User.createdAt.desc(), User.id.desc())\
                 .offset((page - 1) * limit).limit(limit).all()
        return [serialize_user(u) for u in users], total

    def list_technicians(self, db: Session) -> list[dict]:
        techs = db.query(User).filter(
            User.role == RoleName.TECHNICIAN,
            User.isActive == True,  # noqa: E712
        ).order_by(User.name).all()
        return [
            {"id": t.id, "name": t.name, "email": t.email, "phone": t.phone, "department": t.department}
            for t in techs
        ]

    # ─── Get by ID ────────────────────────────────────────────────────────────
    def get_user(self, db: Session, user_id: int) -> dict:
        return serialize_user(self._get(db, user_id))

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_user(self, db: Session, user_id: int, data: UserUpdateRequest, actor_id: int) -> dict:
        u = self._get(db, user_id)

        if u.id == actor_id and data.isActive is False:
            raise ForbiddenException("You cannot deactivate your own account")
        if data.email:
            email = str(data.email).lower()
            if email != u.email and db.query(User).filter(User.email == email, User.id != user_id).first():
                raise DuplicateEntryException("Email already used by another user", field="email")
            u.email = email

        if data.name:                   u.name       = data.name
        if data.role is not None:       u.role       = data.role
        if data.phone is not None:      u.phone      = data.phone
        if data.department is not None: u.department = data.department
        if data.language is not None:   u.language   = data.language
        if data.isActive is not None:   u.isActive   = data.isActive

        log_action(db, actor_id, "UPDATE", "User", u.id, f"Admin updated user {u.name}")
        db.commit()
        db.refresh(u)
        return serialize_user(u)

    # ─── Activate / Deactivate ────────────────────────────────────────────────
    def set_active(self, db: Session, user_id: int, is_active: bool, actor_id: int) -> dict:
        u = self._get(db, user_id)
        if u.id == actor_id and not is_active:
            raise ForbiddenException("You cannot deactivate your own account")

        u.isActive = is_active
        action = "ACTIVATE" if is_active else "DEACTIVATE"
        log_action(db, actor_id, action, "User", u.id, f"Admin {action.lower()}d user {u.name}")
        db.commit()
        db.refresh(u)
        return serialize_user(u)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_user(self, db: Session, user_id: int, actor_id: int) -> None:
        u = self._get(db, user_id)
        if u.id == actor_id:
            raise ForbiddenException("You cannot delete your own account")

        linked = db.query(MaintenanceRequest).filter(or_(
            MaintenanceRequest.createdById == user_id,
            MaintenanceRequest.assignedToId == user_id,
        )).count()
        commented = db.query(RequestComment).filter(RequestComment.createdById == user_id).count()
        if linked or commented:
            raise UserInUseException()

        log_action(db, actor_id, "DELETE", "User", u.id, f"Admin deleted user {u.name} ({u.email})")
        db.delete(u)
        db.commit()


user_service = UserService()
