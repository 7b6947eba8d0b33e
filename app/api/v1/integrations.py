from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_admin_user
from app.models.user import User
from app.schemas.common import success_response
from app.services.sync_service import sync_service
from app.utils.exceptions import ExternalServiceException

router = APIRouter(prefix="/integrations/freshservice")


@router.get("/tickets", summary="List Freshservice tickets (Admin)")
def list_tickets(
    page:    int = Query(1, ge=1),
    perPage: int = Query(30, ge=1, le=100),
    _: User = Depends(get_admin_user),
):
    tickets = sync_service.list_remote_tickets(page=page, per_page=perPage)
    return success_response(f"{len(tickets)} ticket(s) retrieved", tickets)


@router.post("/tickets/{ticket_id}/sync", summary="Sync a Freshservice ticket into the system (Admin)")
def sync_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    result = sync_service.sync_ticket_to_system(db, ticket_id, current_user)
    if not result["success"]:
        raise ExternalServiceException(f"Ticket sync failed: {result['error']}")
    return success_response(f"Ticket {result['action']}", {
        "action":  result["action"],
        "request": result["data"],
    })
