"""SQLAlchemy models package - imports all models so they register with Base.metadata"""
from app.models.base import Base
from app.models.connection_request import ConnectionRequest
from app.models.premium_teacher import PremiumTeacher
from app.models.premium_student import PremiumStudent
from app.models.stripe_event import StripeEvent

# Export all for convenience
__all__ = [
    "Base", "ConnectionRequest", "PremiumTeacher", "PremiumStudent", "StripeEvent"
]
