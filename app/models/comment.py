from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from app.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class RequestComment(Base):
    __tablename__ = "request_comments"

    id          = Column(Integer, primary_key=True, index=True)
    requestId   = Column(Integer, ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    text        = Column(Text, nullable=False)
    createdById = Column(Integer, ForeignKey("users.id"), nullable=False)
    createdAt   = Column(TIMESTAMP(timezone=True), default=_utcnow, nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    request    = relationship("MaintenanceRequest", back_populates="comments")
    created_by = relationship("User")

    def __repr__(self):
        return f"<RequestComment id={self.id} requestId={self.requestId}>"
