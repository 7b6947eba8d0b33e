import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class RoleName(str, enum.Enum):
    ADMIN      = "admin"
    TECHNICIAN = "technician"
    USER       = "user"


class User(Base):
    __tablename__ = "users"

    id         = Column(Integer, primary_key=True, index=True)
    name       = Column(String(150), nullable=False)
    email      = Column(String(255), unique=True, nullable=False, index=True)
    password   = Column(String(255), nullable=False)       # bcrypt hash, never plaintext
    role       = Column(Enum(RoleName, name="user_role", values_callable=lambda e: [m.value for m in e]),
                        default=RoleName.USER, nullable=False)
    isActive   = Column(Boolean, default=True, nullable=False)
    language   = Column(String(5), default="ar", nullable=False)
    phone      = Column(String(50), nullable=True)
    department = Column(String(150), nullable=True)
    createdAt  = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt  = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    created_requests  = relationship("MaintenanceRequest", foreign_keys="MaintenanceRequest.createdById",
                                     back_populates="created_by")
    assigned_requests = relationship("MaintenanceRequest", foreign_keys="MaintenanceRequest.assignedToId",
                                     back_populates="assigned_to")
    audit_logs        = relationship("AuditLog", back_populates="user")

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
