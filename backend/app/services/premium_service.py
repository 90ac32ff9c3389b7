"""Premium service - premium record upserts, status queries and content updates"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.core.metrics import premium_upserts_counter
from app.db.helpers import upsert
from app.models.premium_student import PremiumStudent
from app.models.premium_teacher import PremiumTeacher
from app.utils.ids import generate_id, normalize_email

logger = logging.getLogger(__name__)

LINK_FIELDS = ("link1", "link2", "link3")
VIDEO_FIELDS = ("video1", "video2", "video3")
STUDENT_PROFILE_FIELDS = ("subject", "mobile", "topix", "description")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _amount(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def teacher_to_dict(record: PremiumTeacher) -> Dict[str, Any]:
    return {
        "id": record.id,
        "mail": record.mail,
        "ispaid": record.ispaid,
        "link_or_video": record.link_or_video,
        "link1": record.link1,
        "link2": record.link2,
        "link3": record.link3,
        "video1": record.video1,
        "video2": record.video2,
        "video3": record.video3,
        "paymentDate": _iso(record.payment_date),
        "stripeSessionId": record.stripe_session_id,
        "paymentAmount": _amount(record.payment_amount),
        "created": _iso(record.created_at),
        "updated": _iso(record.updated_at),
    }


def student_to_dict(record: PremiumStudent) -> Dict[str, Any]:
    return {
        "id": record.id,
        "email": record.email,
        "subject": record.subject,
        "mobile": record.mobile,
        "topix": record.topix,
        "description": record.description,
        "ispayed": record.ispayed,
        "paymentDate": _iso(record.payment_date),
        "stripeSessionId": record.stripe_session_id,
        "paymentAmount": _amount(record.payment_amount),
        "created": _iso(record.created_at),
        "updated": _iso(record.updated_at),
    }


# ============================================================================
# WEBHOOK UPSERTS
# ============================================================================

def upsert_teacher_premium(
    db: Session,
    email: str,
    stripe_session_id: str,
    payment_amount: Optional[Decimal],
    paid_at: datetime
) -> bool:
    """Mark a teacher's premium record paid, creating it if needed

    Existing link/video content is left untouched; a new record starts in
    link mode with empty link placeholders. Does not commit.

    Returns:
        True if this checkout session was not already recorded for the email
    """
    email = normalize_email(email)
    previous_session = db.query(PremiumTeacher.stripe_session_id).filter(
        PremiumTeacher.mail == email
    ).scalar()
    now = datetime.now(timezone.utc)
    payment_values = {
        "ispaid": True,
        "payment_date": paid_at,
        "stripe_session_id": stripe_session_id,
        "payment_amount": payment_amount,
        "updated_at": now,
    }
    upsert(
        db,
        PremiumTeacher,
        values={
            "id": generate_id(),
            "mail": email,
            "link_or_video": True,
            "link1": "",
            "link2": "",
            "link3": "",
            "created_at": now,
            **payment_values,
        },
        conflict_columns=["mail"],
        update_values=payment_values,
    )
    premium_upserts_counter.labels(kind="teacher").inc()
    logger.info(f"Premium status recorded for teacher {email} (session {stripe_session_id})")
    return previous_session != stripe_session_id


def upsert_student_premium(
    db: Session,
    email: str,
    stripe_session_id: str,
    payment_amount: Optional[Decimal],
    paid_at: datetime,
    profile: Optional[Dict[str, str]] = None
) -> bool:
    """Mark a student's premium listing paid, creating it if needed

    Payment columns are always overwritten. Profile fields are overwritten
    only when the event carries a non-empty value. Does not commit.

    Returns:
        True if this checkout session was not already recorded for the email
    """
    email = normalize_email(email)
    previous_session = db.query(PremiumStudent.stripe_session_id).filter(
        PremiumStudent.email == email
    ).scalar()
    profile = {
        field: (profile or {}).get(field) or ""
        for field in STUDENT_PROFILE_FIELDS
    }
    now = datetime.now(timezone.utc)
    payment_values = {
        "ispayed": True,
        "payment_date": paid_at,
        "stripe_session_id": stripe_session_id,
        "payment_amount": payment_amount,
        "updated_at": now,
    }
    update_values = dict(payment_values)
    update_values.update({field: value for field, value in profile.items() if value})

    upsert(
        db,
        PremiumStudent,
        values={
            "id": generate_id(),
            "email": email,
            "created_at": now,
            **profile,
            **payment_values,
        },
        conflict_columns=["email"],
        update_values=update_values,
    )
    premium_upserts_counter.labels(kind="student").inc()
    logger.info(f"Premium status recorded for student {email} (session {stripe_session_id})")
    return previous_session != stripe_session_id


# ============================================================================
# STATUS QUERIES (read-only)
# ============================================================================

def get_teacher_premium_status(db: Session, teacher_email: str) -> Dict[str, Any]:
    """Current premium state for a teacher; never creates a record"""
    email = normalize_email(teacher_email)
    if not email:
        raise ValidationError("Teacher email is required")

    record = db.query(PremiumTeacher).filter(PremiumTeacher.mail == email).first()
    if not record:
        return {"hasPremium": False, "isPaid": False, "premiumData": None}
    return {
        "hasPremium": True,
        "isPaid": record.ispaid,
        "premiumData": teacher_to_dict(record),
    }


def get_student_premium_status(db: Session, student_email: str) -> Dict[str, Any]:
    """Current premium state for a student; never creates a record"""
    email = normalize_email(student_email)
    if not email:
        raise ValidationError("Student email is required")

    record = db.query(PremiumStudent).filter(PremiumStudent.email == email).first()
    if not record:
        return {"hasPremium": False, "isPaid": False, "premiumData": None}
    return {
        "hasPremium": True,
        "isPaid": record.ispayed,
        "premiumData": student_to_dict(record),
    }


# ============================================================================
# CONTENT UPDATE
# ============================================================================

def update_teacher_content(db: Session, teacher_email: str, content: Dict[str, Any]) -> Dict[str, Any]:
    """Replace a paid teacher's showcase content

    The paid check and the write are one UPDATE, so content can never be
    written to an unpaid record. Only the three columns of the active mode
    are written; ``link_or_video`` in ``content`` switches mode, otherwise
    the record's current mode is kept.

    Args:
        db: Database session
        teacher_email: Natural key of the premium record
        content: link1..3 / video1..3 and optional link_or_video

    Returns:
        The updated record as a dict

    Raises:
        ValidationError: If the email is empty
        PermissionDeniedError: If no paid record exists for the email
    """
    email = normalize_email(teacher_email)
    if not email:
        raise ValidationError("Teacher email is required")

    mode = content.get("link_or_video")
    if mode is None:
        current = db.query(PremiumTeacher.link_or_video).filter(PremiumTeacher.mail == email).scalar()
        mode = True if current is None else current

    fields = LINK_FIELDS if mode else VIDEO_FIELDS
    values = {field: content.get(field) or "" for field in fields}
    if not mode:
        # video columns are nullable file references
        values = {field: value or None for field, value in values.items()}
    values["link_or_video"] = bool(mode)
    values["updated_at"] = datetime.now(timezone.utc)

    result = db.execute(
        update(PremiumTeacher)
        .where(PremiumTeacher.mail == email, PremiumTeacher.ispaid.is_(True))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.warning(f"Content update refused for {email}: no paid premium record")
        raise PermissionDeniedError("Premium subscription required")

    db.commit()
    record = db.query(PremiumTeacher).filter(PremiumTeacher.mail == email).first()
    db.refresh(record)
    logger.info(f"Premium content updated for teacher {email} ({'links' if mode else 'videos'})")
    return teacher_to_dict(record)
