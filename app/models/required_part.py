from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class RequiredPart(Base):
    __tablename__ = "required_parts"

    id               = Column(Integer, primary_key=True, index=True)
    requestId        = Column(Integer, ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
                              nullable=False, index=True)
    partName         = Column(String(200), nullable=False)
    quantity         = Column(Integer, nullable=False)
    availableInStock = Column(Boolean, default=False, nullable=False)
    requestedAt      = Column(TIMESTAMP(timezone=True),
                              default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_required_part_quantity"),
    )

    request = relationship("MaintenanceRequest", back_populates="required_parts")

    def __repr__(self):
        return f"<RequiredPart id={self.id} part={self.partName} qty={self.quantity}>"
