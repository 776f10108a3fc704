from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum, Uuid
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base, generate_uuid


class ComplaintPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ComplaintStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50))
    priority = Column(Enum(ComplaintPriority), nullable=False, default=ComplaintPriority.MEDIUM)
    status = Column(Enum(ComplaintStatus), nullable=False, default=ComplaintStatus.OPEN, index=True)
    assigned_to_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), index=True)
    resolution = Column(Text)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True))
    resolved_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
