"""
Freshservice → maintenance request synchronization.

Helpdesk vocabularies are translated through the lookup tables below; anything
unmapped falls back to a fixed default. Requests are upserted by `externalId`,
so syncing the same ticket repeatedly never creates a second record.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.maintenance_request import (
    MaintenanceRequest, MaintenanceType, Priority, RequestStatus, RequestSource,
)
from app.models.user import User
from app.services import lifecycle
from app.services.maintenance_service import serialize_request
from app.utils.audit import log_action
from app.utils.exceptions import AppException
from app.utils.freshservice import FreshserviceClient, freshservice_client

logger = logging.getLogger(__name__)

# ─── Lookup tables ────────────────────────────────────────────────────────────
CATEGORY_MAP: dict[str, MaintenanceType] = {
    "Electrical":  MaintenanceType.ELECTRICAL,
    "Plumbing":    MaintenanceType.PLUMBING,
    "HVAC":        MaintenanceType.AC,
    "Civil":       MaintenanceType.CIVIL,
    "Fire Safety": MaintenanceType.FIRE_FIGHTING,
    "Generator":   MaintenanceType.GENERATOR,
    "UPS":         MaintenanceType.UPS,
}
DEFAULT_TYPE = MaintenanceType.GENERAL

# Freshservice labels 1=Low .. 4=Urgent; kept in this (inverted) order pending product sign-off.
PRIORITY_MAP: dict[int, Priority] = {
    1: Priority.CRITICAL,
    2: Priority.HIGH,
    3: Priority.MEDIUM,
    4: Priority.LOW,
}
DEFAULT_PRIORITY = Priority.MEDIUM

STATUS_MAP: dict[int, RequestStatus] = {
    2: RequestStatus.IN_PROGRESS,   # Open
    3: RequestStatus.IN_PROGRESS,   # Pending
    4: RequestStatus.COMPLETED,     # Resolved
    5: RequestStatus.CANCELLED,     # Closed
}
DEFAULT_STATUS = RequestStatus.NEW

DEFAULT_CATEGORY = "general"
DEFAULT_LOCATION = "Unspecified"


def _code(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def map_category(category: str | None) -> MaintenanceType:
    return CATEGORY_MAP.get(category, DEFAULT_TYPE)


def map_priority(priority) -> Priority:
    return PRIORITY_MAP.get(_code(priority), DEFAULT_PRIORITY)


def map_status(status) -> RequestStatus:
    return STATUS_MAP.get(_code(status), DEFAULT_STATUS)


def map_ticket(ticket: dict) -> dict:
    """Translate a Freshservice ticket into MaintenanceRequest field values."""
    subject = (ticket.get("subject") or "").strip() or f"Freshservice ticket {ticket.get('id')}"
    return {
        "title":       subject[:200],
        "description": (ticket.get("description_text") or "").strip() or subject,
        "type":        map_category(ticket.get("category")),
        "category":    ticket.get("sub_category") or DEFAULT_CATEGORY,
        "priority":    map_priority(ticket.get("priority")),
        "status":      map_status(ticket.get("status")),
        "location":    ticket.get("department") or DEFAULT_LOCATION,
        "externalId":  str(ticket["id"]),
    }


class SyncService:

    def __init__(self, client: FreshserviceClient = freshservice_client):
        self.client = client

    def list_remote_tickets(self, page: int = 1, per_page: int = 30) -> list[dict]:
        return self.client.get_tickets(page=page, per_page=per_page)

    def sync_ticket_to_system(self, db: Session, ticket_id: int | str, actor: User) -> dict:
        """
        Fetch one Freshservice ticket and upsert it as a maintenance request.

        Returns {"success": True, "action": "created" | "updated", "data": {...}}
        or {"success": False, "error": "..."}; failures are never raised.
        """
        try:
            ticket = self.client.get_ticket(ticket_id)
            fields = map_ticket(ticket)
        except AppException as e:
            logger.warning(f"Freshservice sync of ticket {ticket_id} failed: {e.message}")
            return {"success": False, "error": e.message}
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Freshservice ticket {ticket_id} has an unexpected shape: {e}")
            return {"success": False, "error": "Freshservice returned an unexpected ticket format"}

        try:
            return self._upsert(db, fields, actor)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Database error while syncing Freshservice ticket {ticket_id}")
            return {"success": False, "error": "Database error while saving the synced ticket"}

    def _upsert(self, db: Session, fields: dict, actor: User) -> dict:
        status = fields.pop("status")
        m = db.query(MaintenanceRequest).filter(
            MaintenanceRequest.externalId == fields["externalId"]
        ).first()

        if m:
            action = "updated"
            for key, value in fields.items():
                setattr(m, key, value)
        else:
            action = "created"
            m = MaintenanceRequest(
                **fields,
                status=RequestStatus.NEW,
                source=RequestSource.EXTERNAL,
                createdById=actor.id,
                images=[],
            )
            db.add(m)
        lifecycle.apply_status(m, status)
        db.flush()

        log_action(db, actor.id, "SYNC", "MaintenanceRequest", m.id,
                   f"Freshservice ticket {m.externalId} {action}")
        db.commit()
        db.refresh(m)
        logger.info(f"Freshservice ticket {m.externalId} {action} as request #{m.id}")
        return {"success": True, "action": action, "data": serialize_request(m, detail=True)}


sync_service = SyncService()
