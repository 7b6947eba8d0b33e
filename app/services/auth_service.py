from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User, RoleName
from app.schemas.auth import (
    LoginRequest, RegisterRequest, ChangePasswordRequest, ProfileUpdateRequest,
)
from app.utils.security import (
    verify_password, hash_password, create_access_token, decode_access_token,
)
from app.utils.audit import log_action
from app.utils.exceptions import (
    UnauthorizedException, AccountInactiveException,
    DuplicateEntryException, ForbiddenException,
)

INVALID_CREDENTIALS = "Invalid email or password"


def serialize_user(u: User) -> dict:
    """Public projection of a user. The password hash never leaves the service layer."""
    return {
        "id":         u.id,
        "name":       u.name,
        "email":      u.email,
        "role":       RoleName(u.role).value,
        "isActive":   u.isActive,
        "language":   u.language,
        "phone":      u.phone,
        "department": u.department,
        "createdAt":  u.createdAt.isoformat() if u.createdAt else None,
    }


def _session(user: User) -> dict:
    return {
        "token":     create_access_token(user.id, RoleName(user.role).value),
        "tokenType": "Bearer",
        "expiresIn": settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        "user":      serialize_user(user),
    }


class AuthService:

    # ─── Register ─────────────────────────────────────────────────────────────
    def register(self, db: Session, data: RegisterRequest) -> dict:
        email = str(data.email).lower()
        if db.query(User).filter(User.email == email).first():
            raise DuplicateEntryException("Email already registered", field="email")

        if data.role == RoleName.ADMIN and not settings.ALLOW_ADMIN_SELF_REGISTRATION:
            raise ForbiddenException("Admin accounts cannot be self-registered")

        user = User(
            name=data.name,
            email=email,
            password=hash_password(data.password),
            role=data.role,
            isActive=True,
            phone=data.phone,
            department=data.department,
        )
        db.add(user)
        db.flush()  # Get user.id without committing

        log_action(db, user.id, "REGISTER", "User", user.id,
                   f"New user registered: {user.name} ({user.email})")
        db.commit()
        db.refresh(user)
        return _session(user)

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, data: LoginRequest) -> dict:
        user = db.query(User).filter(User.email == str(data.email).lower()).first()

        # Same message for unknown e-mail and wrong password (no account enumeration)
        if not user or not verify_password(data.password, user.password):
            raise UnauthorizedException(INVALID_CREDENTIALS)

        if not user.isActive:
            raise AccountInactiveException()

        log_action(db, user.id, "LOGIN", "User", user.id, f"{user.name} logged in")
        db.commit()
        return _session(user)

    # ─── Verify Token ─────────────────────────────────────────────────────────
    def verify_token(self, db: Session, token: str | None) -> User:
        """Resolve a bearer token to its active user, or raise 401."""
        if not token:
            raise UnauthorizedException("No authentication token provided")

        payload = decode_access_token(token)
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise UnauthorizedException("Invalid token payload")

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UnauthorizedException("User for this token no longer exists")
        if not user.isActive:
            raise AccountInactiveException()
        return user

    # ─── Profile ──────────────────────────────────────────────────────────────
    def update_profile(self, db: Session, data: ProfileUpdateRequest, current_user: User) -> dict:
        if data.name is not None:       current_user.name       = data.name
        if data.phone is not None:      current_user.phone      = data.phone
        if data.department is not None: current_user.department = data.department
        if data.language is not None:   current_user.language   = data.language

        log_action(db, current_user.id, "UPDATE_PROFILE", "User", current_user.id,
                   f"{current_user.name} updated their profile")
        db.commit()
        db.refresh(current_user)
        return serialize_user(current_user)

    # ─── Change Password ──────────────────────────────────────────────────────
    def change_password(self, db: Session, data: ChangePasswordRequest, current_user: User) -> None:
        if not verify_password(data.currentPassword, current_user.password):
            raise UnauthorizedException("Current password is incorrect")

        current_user.password = hash_password(data.newPassword)
        log_action(db, current_user.id, "CHANGE_PASSWORD", "User", current_user.id,
                   f"{current_user.name} changed their password")
        db.commit()


auth_service = AuthService()
