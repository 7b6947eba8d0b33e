import pytest

from app.models.maintenance_request import (
    MaintenanceRequest, MaintenanceType, Priority, RequestStatus, RequestSource,
)
from app.services import sync_service as sync_module
from app.services.sync_service import SyncService, map_category, map_priority, map_status, map_ticket
from app.utils.exceptions import ExternalServiceException
from tests.conftest import auth_headers


class FakeFreshservice:
    def __init__(self, tickets=None, error=None):
        self.tickets = tickets or {}
        self.error = error

    def get_ticket(self, ticket_id):
        if self.error:
            raise self.error
        return self.tickets[int(ticket_id)]

    def get_tickets(self, page=1, per_page=30):
        if self.error:
            raise self.error
        return list(self.tickets.values())


TICKET = {
    "id": 101,
    "subject": "Water leak in pantry",
    "description_text": "Pipe under the sink is dripping",
    "category": "Plumbing",
    "sub_category": "Pipes",
    "priority": 1,
    "status": 2,
    "department": "Finance",
}


# ─── Mapping tables ───────────────────────────────────────────────────────────
@pytest.mark.parametrize("code, expected", [
    (1, Priority.CRITICAL),
    (4, Priority.LOW),
    ("2", Priority.HIGH),
    (9, Priority.MEDIUM),
    (None, Priority.MEDIUM),
])
def test_map_priority(code, expected):
    assert map_priority(code) == expected


def test_map_status_and_category():
    assert map_status(4) == RequestStatus.COMPLETED
    assert map_status(5) == RequestStatus.CANCELLED
    assert map_status(99) == RequestStatus.NEW
    assert map_category("HVAC") == MaintenanceType.AC
    assert map_category("Landscaping") == MaintenanceType.GENERAL


def test_map_ticket_fills_defaults():
    fields = map_ticket({"id": 7, "subject": "", "priority": "x"})
    assert fields["title"] == "Freshservice ticket 7"
    assert fields["description"] == "Freshservice ticket 7"
    assert fields["type"] == MaintenanceType.GENERAL
    assert fields["category"] == "general"
    assert fields["location"] == "Unspecified"
    assert fields["externalId"] == "7"


# ─── Upsert ───────────────────────────────────────────────────────────────────
def test_sync_creates_then_updates(db, admin):
    fake = FakeFreshservice({101: dict(TICKET)})
    service = SyncService(client=fake)

    first = service.sync_ticket_to_system(db, 101, admin)
    assert first["success"] is True
    assert first["action"] == "created"
    data = first["data"]
    assert data["externalId"] == "101"
    assert data["source"] == "external"
    assert data["type"] == "plumbing"
    assert data["priority"] == "critical"
    assert data["status"] == "in_progress"
    assert data["createdBy"]["id"] == admin.id

    fake.tickets[101]["status"] = 4
    fake.tickets[101]["subject"] = "Water leak fixed"
    second = service.sync_ticket_to_system(db, "101", admin)
    assert second["action"] == "updated"
    assert second["data"]["id"] == data["id"]
    assert second["data"]["title"] == "Water leak fixed"
    assert second["data"]["completedAt"] is not None

    assert db.query(MaintenanceRequest).filter(MaintenanceRequest.externalId == "101").count() == 1
    stored = db.query(MaintenanceRequest).one()
    assert stored.source == RequestSource.EXTERNAL


def test_sync_reports_remote_failure(db, admin):
    service = SyncService(client=FakeFreshservice(error=ExternalServiceException("Freshservice request timed out")))
    result = service.sync_ticket_to_system(db, 5, admin)
    assert result == {"success": False, "error": "Freshservice request timed out"}
    assert db.query(MaintenanceRequest).count() == 0


def test_sync_reports_malformed_ticket(db, admin):
    service = SyncService(client=FakeFreshservice({5: {"subject": "no id"}}))
    result = service.sync_ticket_to_system(db, 5, admin)
    assert result["success"] is False
    assert "unexpected" in result["error"]


# ─── HTTP surface ─────────────────────────────────────────────────────────────
def test_sync_endpoint(client, monkeypatch, admin):
    monkeypatch.setattr(sync_module.sync_service, "client", FakeFreshservice({101: dict(TICKET)}))

    res = client.post("/api/v1/integrations/freshservice/tickets/101/sync", headers=auth_headers(admin))
    assert res.status_code == 200
    body = res.json()["data"]
    assert body["action"] == "created"
    assert body["request"]["externalId"] == "101"


def test_sync_endpoint_failure_is_bad_gateway(client, monkeypatch, admin):
    monkeypatch.setattr(sync_module.sync_service, "client",
                        FakeFreshservice(error=ExternalServiceException("Freshservice is unreachable")))

    res = client.post("/api/v1/integrations/freshservice/tickets/1/sync", headers=auth_headers(admin))
    assert res.status_code == 502
    assert res.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


def test_list_remote_tickets(client, monkeypatch, admin, user):
    monkeypatch.setattr(sync_module.sync_service, "client", FakeFreshservice({101: dict(TICKET)}))

    assert client.get("/api/v1/integrations/freshservice/tickets", headers=auth_headers(user)).status_code == 403

    res = client.get("/api/v1/integrations/freshservice/tickets", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["data"][0]["id"] == 101


def test_repeated_sync_of_unchanged_ticket(db, admin):
    service = SyncService(client=FakeFreshservice({101: dict(TICKET)}))

    first = service.sync_ticket_to_system(db, 101, admin)["data"]
    second = service.sync_ticket_to_system(db, 101, admin)

    assert second["action"] == "updated"
    unchanged = ("id", "title", "description", "type", "category", "priority", "status", "location")
    assert {k: second["data"][k] for k in unchanged} == {k: first[k] for k in unchanged}
    assert db.query(MaintenanceRequest).count() == 1
