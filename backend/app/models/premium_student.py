"""PremiumStudent model"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, Numeric
from datetime import datetime, timezone
from app.models.base import Base
from app.utils.ids import generate_id


class PremiumStudent(Base):
    """Paid premium listing for a student, keyed by email"""
    __tablename__ = "premium_students"

    id = Column(String(15), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    subject = Column(Text, nullable=False, default="")
    mobile = Column(String(50), nullable=False, default="")
    topix = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    ispayed = Column(Boolean, default=False, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    stripe_session_id = Column(String(255), nullable=True)
    payment_amount = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
