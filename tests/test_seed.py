from app.models.user import User, RoleName
from app.services.seed_service import DEFAULT_USERS, seed_default_users
from app.utils.security import verify_password


def test_seed_creates_default_accounts(db):
    created = seed_default_users(db, password="changeme1")
    assert created == [u["email"] for u in DEFAULT_USERS]

    admin = db.query(User).filter(User.email == "admin@company.com").one()
    assert admin.role == RoleName.ADMIN
    assert verify_password("changeme1", admin.password)


def test_seed_is_idempotent(db):
    seed_default_users(db)
    assert seed_default_users(db) == []
    assert db.query(User).count() == len(DEFAULT_USERS)


def test_seed_skips_existing_email(db, make_user):
    make_user("Existing", "technician@company.com", RoleName.USER)
    created = seed_default_users(db)
    assert "technician@company.com" not in created
    assert db.query(User).count() == len(DEFAULT_USERS)
