"""Premium API routes - status queries and showcase content updates"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.payments import PremiumStatusResponse, UpdatePremiumContentRequest
from app.services.premium_service import (
    get_teacher_premium_status, get_student_premium_status, update_teacher_content
)

router = APIRouter(tags=["premium"])
logger = logging.getLogger(__name__)


@router.get("/check-premium-status/{teacher_email}", response_model=PremiumStatusResponse)
def check_teacher_premium_status(teacher_email: str, db: Session = Depends(get_db)):
    """Get a teacher's premium status (read-only)"""
    return get_teacher_premium_status(db, teacher_email)


@router.get("/check-student-premium-status/{student_email}", response_model=PremiumStatusResponse)
def check_student_premium_status(student_email: str, db: Session = Depends(get_db)):
    """Get a student's premium status (read-only)"""
    return get_student_premium_status(db, student_email)


@router.post("/update-premium-content")
def update_premium_content(update_request: UpdatePremiumContentRequest, db: Session = Depends(get_db)):
    """Update showcase links or videos for a paid teacher"""
    record = update_teacher_content(
        db,
        update_request.teacher_email,
        update_request.content_data.model_dump(exclude_none=True)
    )
    return {
        "success": True,
        "message": "Premium content updated successfully",
        "data": record
    }
