from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog


def log_action(
    db: Session,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    description: str | None = None,
) -> None:
    """
    Add an audit log entry to the current session.

    Args:
        db:          Active DB session (nothing is committed here — caller commits)
        user_id:     ID of the acting user (None = system action, e.g. seeding)
        action:      Verb: CREATE, UPDATE, STATUS_CHANGE, COMMENT, ADD_PART, SYNC, ...
        entity_type: "MaintenanceRequest", "User", ...
        entity_id:   Primary key of the affected record
        description: Human-readable description

    Usage:
        log_action(db, current_user.id, "COMMENT", "MaintenanceRequest", request.id,
                   f"Comment added to request #{request.id}")
        db.commit()
    """
    db.add(AuditLog(
        userId=user_id,
        action=action,
        entityType=entity_type,
        entityId=entity_id,
        description=description,
    ))
