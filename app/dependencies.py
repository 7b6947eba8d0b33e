from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User, RoleName
from app.services.auth_service import auth_service
from app.utils.exceptions import ForbiddenException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate the Bearer token and return the current active User.
    Raises 401 if the token is missing, invalid, expired, or the account is inactive.
    """
    return auth_service.verify_token(db, credentials.credentials if credentials else None)


# ─── Role Guards ──────────────────────────────────────────────────────────────
def require_roles(*roles: RoleName):
    """
    Factory that returns a FastAPI dependency requiring one of the given roles.

    Usage:
        @router.put("/{id}")
        def update(current_user = Depends(require_roles(RoleName.ADMIN, RoleName.TECHNICIAN))):
            ...
    """
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenException(
                f"This action requires one of these roles: {[r.value for r in roles]}"
            )
        return current_user
    return dependency


def get_admin_user(current_user: User = Depends(require_roles(RoleName.ADMIN))) -> User:
    return current_user


def get_staff_user(
    current_user: User = Depends(require_roles(RoleName.ADMIN, RoleName.TECHNICIAN))
) -> User:
    return current_user
