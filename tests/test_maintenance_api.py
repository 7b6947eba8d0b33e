import os

from app.config import settings
from app.models.audit_log import AuditLog
from app.models.maintenance_request import MaintenanceRequest, MaintenanceType, RequestStatus
from app.models.user import RoleName
from tests.conftest import auth_headers, image_bytes

URL = "/api/v1/maintenance"

NEW_REQUEST = {
    "title": "AC not cooling",
    "description": "Meeting room 2 AC blows warm air",
    "type": "ac",
    "category": "split unit",
    "priority": "high",
    "location": "Building A, floor 2",
}


def _create(client, who, **overrides):
    res = client.post(URL, headers=auth_headers(who), data={**NEW_REQUEST, **overrides})
    assert res.status_code == 201, res.text
    return res.json()["data"]


# ─── Create ───────────────────────────────────────────────────────────────────
def test_create_request(client, user):
    data = _create(client, user)
    assert data["status"] == "new"
    assert data["priority"] == "high"
    assert data["createdBy"]["id"] == user.id
    assert data["assignedTo"] is None
    assert data["completedAt"] is None
    assert data["source"] == "internal"
    assert data["isTerminal"] is False
    assert data["comments"] == []
    assert data["requiredParts"] == []


def test_create_defaults_priority_to_medium(client, user):
    payload = {k: v for k, v in NEW_REQUEST.items() if k != "priority"}
    res = client.post(URL, headers=auth_headers(user), data=payload)
    assert res.json()["data"]["priority"] == "medium"


def test_create_rejects_blank_title_and_unknown_type(client, user):
    assert client.post(URL, headers=auth_headers(user), data={**NEW_REQUEST, "title": "   "}).status_code == 422
    assert client.post(URL, headers=auth_headers(user), data={**NEW_REQUEST, "type": "magic"}).status_code == 422


def test_create_with_images(client, user):
    res = client.post(URL, headers=auth_headers(user), data=NEW_REQUEST, files=[
        ("images", ("unit.png", image_bytes("PNG"), "image/png")),
        ("images", ("label.gif", image_bytes("GIF"), "image/gif")),
    ])
    assert res.status_code == 201, res.text
    images = res.json()["data"]["images"]
    assert [os.path.splitext(name)[1] for name in images] == [".png", ".gif"]
    for name in images:
        assert os.path.exists(os.path.join(settings.UPLOAD_DIR, name))


def test_create_with_non_image_creates_nothing(client, db, user):
    res = client.post(URL, headers=auth_headers(user), data=NEW_REQUEST, files=[
        ("images", ("notes.txt", b"hello", "text/plain")),
    ])
    assert res.status_code == 422
    assert db.query(MaintenanceRequest).count() == 0


def test_create_requires_authentication(client):
    assert client.post(URL, data=NEW_REQUEST).status_code == 401


def test_create_is_audited(client, db, user):
    data = _create(client, user)
    entry = db.query(AuditLog).filter(AuditLog.action == "CREATE", AuditLog.entityId == data["id"]).one()
    assert entry.userId == user.id


# ─── Full lifecycle ───────────────────────────────────────────────────────────
def test_request_lifecycle_end_to_end(client, user, admin, technician):
    created = _create(client, user)
    rid = created["id"]

    # Unassigned technician cannot touch it yet
    res = client.put(f"{URL}/{rid}", headers=auth_headers(technician), json={"status": "in_progress"})
    assert res.status_code == 403

    res = client.put(f"{URL}/{rid}", headers=auth_headers(admin), json={"assignedToId": technician.id})
    assert res.status_code == 200
    assert res.json()["data"]["assignedTo"]["id"] == technician.id

    res = client.put(f"{URL}/{rid}", headers=auth_headers(technician), json={"status": "in_progress"})
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "in_progress"

    res = client.post(f"{URL}/{rid}/comments", headers=auth_headers(user), json={"text": "Any update?"})
    assert res.status_code == 201

    res = client.put(f"{URL}/{rid}", headers=auth_headers(technician),
                     json={"status": "completed", "actualHours": 2.5})
    data = res.json()["data"]
    assert data["status"] == "completed"
    assert data["isTerminal"] is True
    assert data["actualHours"] == 2.5
    completed_at = data["completedAt"]
    assert completed_at is not None

    # Reopen and complete again: completion time is kept
    client.put(f"{URL}/{rid}", headers=auth_headers(admin), json={"status": "in_progress"})
    res = client.put(f"{URL}/{rid}", headers=auth_headers(admin), json={"status": "completed"})
    assert res.json()["data"]["completedAt"] == completed_at

    detail = client.get(f"{URL}/{rid}", headers=auth_headers(user)).json()["data"]
    assert [c["text"] for c in detail["comments"]] == ["Any update?"]


def test_status_change_is_audited(client, db, make_request, admin, user):
    m = make_request(user)
    client.put(f"{URL}/{m.id}", headers=auth_headers(admin), json={"status": "cancelled"})
    entry = db.query(AuditLog).filter(AuditLog.action == "STATUS_CHANGE").one()
    assert "new -> cancelled" in entry.description


def test_regular_user_cannot_update(client, make_request, user):
    m = make_request(user)
    res = client.put(f"{URL}/{m.id}", headers=auth_headers(user), json={"status": "completed"})
    assert res.status_code == 403


def test_assignee_must_be_staff(client, make_request, admin, user, other_user):
    m = make_request(user)
    res = client.put(f"{URL}/{m.id}", headers=auth_headers(admin), json={"assignedToId": other_user.id})
    assert res.status_code == 422
    assert res.json()["error"]["field"] == "assignedToId"


def test_unassign(client, make_request, admin, user, technician):
    m = make_request(user, assignee=technician)
    res = client.put(f"{URL}/{m.id}", headers=auth_headers(admin), json={"assignedToId": None})
    assert res.json()["data"]["assignedTo"] is None


def test_update_missing_request_is_not_found(client, admin):
    assert client.put(f"{URL}/999", headers=auth_headers(admin), json={"title": "x"}).status_code == 404


# ─── Visibility ───────────────────────────────────────────────────────────────
def test_visibility_by_role(client, make_request, user, other_user, technician, admin):
    mine = make_request(user, title="Mine")
    theirs = make_request(other_user, title="Theirs", assignee=technician)

    listed = client.get(URL, headers=auth_headers(user)).json()
    assert [r["id"] for r in listed["data"]] == [mine.id]
    assert listed["meta"]["total"] == 1

    assert client.get(f"{URL}/{theirs.id}", headers=auth_headers(user)).status_code == 404
    assert client.get(f"{URL}/{theirs.id}", headers=auth_headers(technician)).status_code == 200

    tech_ids = [r["id"] for r in client.get(URL, headers=auth_headers(technician)).json()["data"]]
    assert tech_ids == [theirs.id]

    admin_list = client.get(URL, headers=auth_headers(admin)).json()
    assert admin_list["meta"]["total"] == 2


def test_list_filters_and_pagination(client, make_request, admin, user):
    make_request(user, title="A", status=RequestStatus.COMPLETED)
    make_request(user, title="B", type_=MaintenanceType.PLUMBING)
    make_request(user, title="C")

    res = client.get(URL, headers=auth_headers(admin), params={"status": "new"})
    assert {r["title"] for r in res.json()["data"]} == {"B", "C"}

    res = client.get(URL, headers=auth_headers(admin), params={"type": "plumbing"})
    assert [r["title"] for r in res.json()["data"]] == ["B"]

    res = client.get(URL, headers=auth_headers(admin), params={"page": 2, "limit": 2})
    meta = res.json()["meta"]
    assert len(res.json()["data"]) == 1
    assert meta["totalPages"] == 2
    assert meta["hasPrev"] is True
    assert meta["hasNext"] is False


# ─── Comments ─────────────────────────────────────────────────────────────────
def test_comment_permissions(client, make_request, user, other_user, technician):
    m = make_request(user, assignee=technician)

    res = client.post(f"{URL}/{m.id}/comments", headers=auth_headers(technician), json={"text": "On my way"})
    assert res.status_code == 201
    assert res.json()["data"]["comments"][0]["createdBy"]["id"] == technician.id

    res = client.post(f"{URL}/{m.id}/comments", headers=auth_headers(other_user), json={"text": "Me too"})
    assert res.status_code == 403

    res = client.post(f"{URL}/{m.id}/comments", headers=auth_headers(user), json={"text": " "})
    assert res.status_code == 422

    assert client.post(f"{URL}/999/comments", headers=auth_headers(user), json={"text": "x"}).status_code == 404


def test_comments_keep_insertion_order(client, make_request, user):
    m = make_request(user)
    for text in ("first", "second", "third"):
        client.post(f"{URL}/{m.id}/comments", headers=auth_headers(user), json={"text": text})
    detail = client.get(f"{URL}/{m.id}", headers=auth_headers(user)).json()["data"]
    assert [c["text"] for c in detail["comments"]] == ["first", "second", "third"]


# ─── Required parts ───────────────────────────────────────────────────────────
def test_assigned_technician_adds_parts(client, make_request, user, technician):
    m = make_request(user, assignee=technician)
    res = client.post(f"{URL}/{m.id}/required-parts", headers=auth_headers(technician),
                      json={"partName": "Capacitor 35uF", "quantity": 2})
    assert res.status_code == 201
    part = res.json()["data"]["requiredParts"][0]
    assert part["quantity"] == 2
    assert part["availableInStock"] is False


def test_parts_validation_and_permissions(client, make_request, make_user, user, technician):
    m = make_request(user, assignee=technician)
    stranger_tech = make_user("Tech 2", "tech2@example.com", RoleName.TECHNICIAN)

    res = client.post(f"{URL}/{m.id}/required-parts", headers=auth_headers(technician),
                      json={"partName": "Fuse", "quantity": 0})
    assert res.status_code == 422

    res = client.post(f"{URL}/{m.id}/required-parts", headers=auth_headers(stranger_tech),
                      json={"partName": "Fuse", "quantity": 1})
    assert res.status_code == 403

    res = client.post(f"{URL}/{m.id}/required-parts", headers=auth_headers(user),
                      json={"partName": "Fuse", "quantity": 1})
    assert res.status_code == 403


# ─── Images ───────────────────────────────────────────────────────────────────
def test_upload_images(client, make_request, user):
    m = make_request(user)
    res = client.post(f"{URL}/{m.id}/images", headers=auth_headers(user), files=[
        ("images", ("leak.png", image_bytes("PNG"), "image/png")),
        ("images", ("leak2.jpeg", image_bytes("JPEG"), "image/jpeg")),
    ])
    assert res.status_code == 201, res.text
    images = res.json()["data"]["images"]
    assert len(images) == 2
    assert images[0].endswith(".png")
    assert images[1].endswith(".jpg")


def test_upload_rejects_non_images(client, make_request, user):
    m = make_request(user)
    res = client.post(f"{URL}/{m.id}/images", headers=auth_headers(user),
                      files=[("images", ("notes.txt", b"hello", "text/plain"))])
    assert res.status_code == 422


def test_html_disguised_as_image_is_refused_and_not_served(client, make_request, user):
    m = make_request(user)
    res = client.post(f"{URL}/{m.id}/images", headers=auth_headers(user), files=[
        ("images", ("evil.html", b"<script>alert(document.cookie)</script>", "image/png")),
    ])
    assert res.status_code == 422

    detail = client.get(f"{URL}/{m.id}", headers=auth_headers(user)).json()["data"]
    assert detail["images"] == []


def test_stored_extension_ignores_client_filename(client, make_request, user):
    m = make_request(user)
    res = client.post(f"{URL}/{m.id}/images", headers=auth_headers(user), files=[
        ("images", ("photo.html", image_bytes("PNG"), "image/png")),
    ])
    assert res.status_code == 201
    name = res.json()["data"]["images"][0]
    assert name.endswith(".png")

    served = client.get(f"/uploads/{name}")
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/png"


def test_upload_limit_per_request(client, make_request, user):
    m = make_request(user)
    files = [("images", (f"p{i}.png", image_bytes(), "image/png")) for i in range(6)]
    res = client.post(f"{URL}/{m.id}/images", headers=auth_headers(user), files=files)
    assert res.status_code == 422


# ─── Delete ───────────────────────────────────────────────────────────────────
def test_only_admin_deletes(client, make_request, user, admin):
    m = make_request(user)
    assert client.delete(f"{URL}/{m.id}", headers=auth_headers(user)).status_code == 403
    assert client.delete(f"{URL}/{m.id}", headers=auth_headers(admin)).status_code == 200
    assert client.get(f"{URL}/{m.id}", headers=auth_headers(admin)).status_code == 404


# ─── Statistics ───────────────────────────────────────────────────────────────
def test_stats(client, make_request, user, other_user, admin):
    make_request(user, status=RequestStatus.NEW)
    make_request(user, status=RequestStatus.COMPLETED, type_=MaintenanceType.PLUMBING)
    make_request(user, status=RequestStatus.IN_PROGRESS, type_=MaintenanceType.PLUMBING)
    make_request(other_user, status=RequestStatus.CANCELLED)

    stats = client.get(f"{URL}/stats/overview", headers=auth_headers(admin)).json()["data"]
    assert stats["total"] == 4
    assert stats["new"] == 1
    assert stats["inProgress"] == 1
    assert stats["completed"] == 1
    assert stats["cancelled"] == 1
    assert stats["typeStats"] == [
        {"type": "electrical", "count": 2},
        {"type": "plumbing", "count": 2},
    ]

    mine = client.get(f"{URL}/stats/overview", headers=auth_headers(user)).json()["data"]
    assert mine["total"] == 3
    assert mine["cancelled"] == 0


def test_admin_completes_request_created_by_user(client, user, other_user, admin):
    created = _create(client, user, description="Unit 3 broken", category="cooling")
    assert created["createdBy"]["id"] == user.id
    assert created["completedAt"] is None

    res = client.put(f"{URL}/{created['id']}", headers=auth_headers(admin), json={"status": "completed"})
    done = res.json()["data"]
    assert done["completedAt"] is not None
    assert (done["type"], done["category"], done["priority"]) == ("ac", "cooling", "high")

    assert client.get(f"{URL}/{created['id']}", headers=auth_headers(user)).status_code == 200
    res = client.get(f"{URL}/{created['id']}", headers=auth_headers(other_user))
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"
