"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters — import parent tables before child tables.
"""

from app.models.user import User, RoleName
from app.models.maintenance_request import (
    MaintenanceRequest, MaintenanceType, Priority, RequestStatus, RequestSource,
)
from app.models.comment import RequestComment
from app.models.required_part import RequiredPart
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "RoleName",
    "MaintenanceRequest",
    "MaintenanceType",
    "Priority",
    "RequestStatus",
    "RequestSource",
    "RequestComment",
    "RequiredPart",
    "AuditLog",
]
