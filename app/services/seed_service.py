import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User, RoleName
from app.utils.audit import log_action
from app.utils.security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"name": "System Administrator", "email": "admin@company.com",      "role": RoleName.ADMIN},
    {"name": "Maintenance Technician", "email": "technician@company.com", "role": RoleName.TECHNICIAN},
    {"name": "Staff Member",         "email": "user@company.com",       "role": RoleName.USER},
]


def seed_default_users(db: Session, password: str | None = None) -> list[str]:
    """
    Create the default admin / technician / user accounts if their e-mails are free.
    Safe to run on every startup. Returns the e-mails that were created.
    """
    password = password or settings.DEFAULT_USER_PASSWORD
    created = []
    for entry in DEFAULT_USERS:
        if db.query(User).filter(User.email == entry["email"]).first():
            continue

        user = User(
            name=entry["name"],
            email=entry["email"],
            password=hash_password(password),
            role=entry["role"],
            isActive=True,
        )
        db.add(user)
        try:
            db.flush()
            log_action(db, None, "SEED", "User", user.id, f"Default account created: {user.email}")
            db.commit()
        except IntegrityError:
            # Another worker inserted the same e-mail between the check and the insert
            db.rollback()
            logger.info(f"Default account {entry['email']} already created by another process")
            continue
        created.append(entry["email"])
        logger.info(f"Default account created: {entry['email']}")
    return created
