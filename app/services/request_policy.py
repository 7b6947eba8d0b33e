"""
Role-based access rules for maintenance requests.

Every route and service decision about who may see or change a request goes
through this module:

    admin       sees and mutates everything
    technician  sees requests they created or are assigned to; may update,
                and add parts to, only requests assigned to them
    user        sees requests they created or are assigned to; may comment
                only on their own requests; never updates lifecycle fields
"""
from sqlalchemy import or_
from sqlalchemy.orm import Query

from app.models.maintenance_request import MaintenanceRequest
from app.models.user import User, RoleName


class RequestPolicy:

    @staticmethod
    def is_admin(user: User) -> bool:
        return user.role == RoleName.ADMIN

    @staticmethod
    def is_creator(user: User, request: MaintenanceRequest) -> bool:
        return request.createdById == user.id

    @staticmethod
    def is_assignee(user: User, request: MaintenanceRequest) -> bool:
        return request.assignedToId is not None and request.assignedToId == user.id

    # ─── Read ─────────────────────────────────────────────────────────────────
    def can_view(self, user: User, request: MaintenanceRequest) -> bool:
        if self.is_admin(user):
            return True
        return self.is_creator(user, request) or self.is_assignee(user, request)

    def visible_to(self, query: Query, user: User) -> Query:
        """Narrow a MaintenanceRequest query to the rows `user` may see."""
        if self.is_admin(user):
            return query
        return query.filter(or_(
            MaintenanceRequest.createdById == user.id,
            MaintenanceRequest.assignedToId == user.id,
        ))

    # ─── Mutations ────────────────────────────────────────────────────────────
    def can_update(self, user: User, request: MaintenanceRequest) -> bool:
        if self.is_admin(user):
            return True
        if user.role == RoleName.TECHNICIAN:
            return self.is_assignee(user, request)
        return False

    def can_comment(self, user: User, request: MaintenanceRequest) -> bool:
        if user.role == RoleName.USER:
            return self.is_creator(user, request)
        return self.can_view(user, request)

    def can_add_part(self, user: User, request: MaintenanceRequest) -> bool:
        if self.is_admin(user):
            return True
        return user.role == RoleName.TECHNICIAN and self.is_assignee(user, request)

    def can_attach_images(self, user: User, request: MaintenanceRequest) -> bool:
        return self.can_view(user, request)

    def can_delete(self, user: User, request: MaintenanceRequest) -> bool:
        return self.is_admin(user)


request_policy = RequestPolicy()
