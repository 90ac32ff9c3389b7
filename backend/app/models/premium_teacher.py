"""PremiumTeacher model"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, Numeric
from datetime import datetime, timezone
from app.models.base import Base
from app.utils.ids import generate_id


class PremiumTeacher(Base):
    """Paid premium showcase for a teacher, keyed by email"""
    __tablename__ = "premium_teachers"

    id = Column(String(15), primary_key=True, default=generate_id)
    mail = Column(String(255), unique=True, nullable=False, index=True)
    ispaid = Column(Boolean, default=False, nullable=False)
    # True: link1..3 are shown, False: video1..3 are shown
    link_or_video = Column(Boolean, default=True, nullable=False)
    link1 = Column(Text, nullable=False, default="")
    link2 = Column(Text, nullable=False, default="")
    link3 = Column(Text, nullable=False, default="")
    video1 = Column(String(255), nullable=True)
    video2 = Column(String(255), nullable=True)
    video3 = Column(String(255), nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    stripe_session_id = Column(String(255), nullable=True)
    payment_amount = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
