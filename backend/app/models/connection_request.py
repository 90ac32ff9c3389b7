"""ConnectionRequest model"""
from sqlalchemy import Column, String, Text, Boolean, DateTime
from datetime import datetime, timezone
from app.models.base import Base
from app.utils.ids import generate_id

# Request lifecycle: pending -> purchased | rejected (both terminal)
STATUS_PENDING = "pending"
STATUS_PURCHASED = "purchased"
STATUS_REJECTED = "rejected"


class ConnectionRequest(Base):
    """A student's request to connect with a teacher about a post"""
    __tablename__ = "connection_requests"

    id = Column(String(15), primary_key=True, default=generate_id)
    student_id = Column(String(15), nullable=False, index=True)
    teacher_id = Column(String(15), nullable=False, index=True)
    post_id = Column(String(15), nullable=True, index=True)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_PENDING)  # 'pending', 'purchased', 'rejected'
    payment_status = Column(String(20), nullable=False, default="unpaid")  # 'unpaid', 'paid'
    contact_revealed = Column(Boolean, default=False, nullable=False)
    purchase_date = Column(DateTime(timezone=True), nullable=True)
    stripe_session_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
