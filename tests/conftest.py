import io
import os
import tempfile

# Settings are read at import time; configure the test environment first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DEFAULT_USERS", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="maintenance-uploads-"))

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models.maintenance_request import MaintenanceRequest, MaintenanceType, RequestStatus
from app.models.user import User, RoleName
from app.utils.security import create_access_token, hash_password

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(database):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(name, email, role=RoleName.USER, password=PASSWORD, is_active=True):
        user = User(
            name=name,
            email=email,
            password=hash_password(password),
            role=role,
            isActive=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("Admin", "admin@example.com", RoleName.ADMIN)


@pytest.fixture
def technician(make_user):
    return make_user("Tech", "tech@example.com", RoleName.TECHNICIAN)


@pytest.fixture
def user(make_user):
    return make_user("Requester", "requester@example.com", RoleName.USER)


@pytest.fixture
def other_user(make_user):
    return make_user("Other", "other@example.com", RoleName.USER)


@pytest.fixture
def make_request(db):
    def _make(creator, title="Broken light", type_=MaintenanceType.ELECTRICAL,
              status=RequestStatus.NEW, assignee=None, **extra):
        m = MaintenanceRequest(
            title=title,
            description=f"{title} in the main hall",
            type=type_,
            category="lighting",
            status=status,
            createdById=creator.id,
            assignedToId=assignee.id if assignee else None,
            images=[],
            **extra,
        )
        db.add(m)
        db.commit()
        db.refresh(m)
        return m
    return _make


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, RoleName(user.role).value)
    return {"Authorization": f"Bearer {token}"}


def image_bytes(fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()
