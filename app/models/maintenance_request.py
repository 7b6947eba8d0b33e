import enum
from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, TIMESTAMP, Enum, Numeric, JSON, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


def _enum_values(e):
    return [m.value for m in e]


class MaintenanceType(str, enum.Enum):
    ELECTRICAL    = "electrical"
    CIVIL         = "civil"
    PLUMBING      = "plumbing"
    AC            = "ac"
    EQUIPMENT     = "equipment"
    BELTS         = "belts"
    FIRE_ALARM    = "fire_alarm"
    UPS           = "ups"
    GENERATOR     = "generator"
    FIRE_FIGHTING = "fire_fighting"
    CLEANING      = "cleaning"
    PEST_CONTROL  = "pest_control"
    GENERAL       = "general"       # fallback for unmapped helpdesk categories


class Priority(str, enum.Enum):
    LOW      = "low"
    MEDIUM   = "medium"
    HIGH     = "high"
    CRITICAL = "critical"


class RequestStatus(str, enum.Enum):
    NEW         = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"
    CANCELLED   = "cancelled"


class RequestSource(str, enum.Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    id             = Column(Integer, primary_key=True, index=True)
    title          = Column(String(200), nullable=False)
    description    = Column(Text, nullable=False)
    type           = Column(Enum(MaintenanceType, name="maintenance_type", values_callable=_enum_values),
                            nullable=False, index=True)
    category       = Column(String(150), nullable=False)
    priority       = Column(Enum(Priority, name="request_priority", values_callable=_enum_values),
                            default=Priority.MEDIUM, nullable=False)
    status         = Column(Enum(RequestStatus, name="request_status", values_callable=_enum_values),
                            default=RequestStatus.NEW, nullable=False)
    location       = Column(String(255), nullable=True)
    createdById    = Column(Integer, ForeignKey("users.id"), nullable=False)
    assignedToId   = Column(Integer, ForeignKey("users.id"), nullable=True)
    images         = Column(JSON, default=list, nullable=False)     # stored filenames, upload order
    completedAt    = Column(TIMESTAMP(timezone=True), nullable=True)  # set once, on first completion
    estimatedHours = Column(Numeric(8, 2), nullable=True)
    actualHours    = Column(Numeric(8, 2), nullable=True)
    externalId     = Column(String(100), unique=True, nullable=True)
    source         = Column(Enum(RequestSource, name="request_source", values_callable=_enum_values),
                            default=RequestSource.INTERNAL, nullable=False)
    createdAt      = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt      = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                            onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_maintenance_requests_status_created", "status", "createdAt"),
        Index("ix_maintenance_requests_creator_created", "createdById", "createdAt"),
        Index("ix_maintenance_requests_assignee_status", "assignedToId", "status"),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    created_by     = relationship("User", foreign_keys=[createdById], back_populates="created_requests")
    assigned_to    = relationship("User", foreign_keys=[assignedToId], back_populates="assigned_requests")
    comments       = relationship("RequestComment", back_populates="request",
                                  cascade="all, delete-orphan", order_by="RequestComment.id")
    required_parts = relationship("RequiredPart", back_populates="request",
                                  cascade="all, delete-orphan", order_by="RequiredPart.id")

    def __repr__(self):
        return f"<MaintenanceRequest id={self.id} status={self.status} type={self.type}>"
