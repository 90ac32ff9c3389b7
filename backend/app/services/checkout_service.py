"""Checkout service - builds purchase intents and opens Stripe checkout sessions"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from app.core.config import settings, CONTACT_PURCHASE, TEACHER_PREMIUM, STUDENT_PREMIUM
from app.core.exceptions import ValidationError
from app.core.logging import payments_logger
from app.core.metrics import checkout_sessions_counter
from app.services.stripe_service import (
    create_checkout_session, retrieve_checkout_session, get_stripe_value
)
from app.utils.ids import normalize_email

logger = logging.getLogger(__name__)

# Stripe rejects metadata values longer than this
METADATA_VALUE_LIMIT = 500


def _metadata_value(value: Optional[str]) -> str:
    return (value or "").strip()[:METADATA_VALUE_LIMIT]


def _open_session(purchase_type: str, **kwargs) -> Dict[str, Any]:
    """Create the session and count the attempt by purchase type"""
    try:
        session_data = create_checkout_session(**kwargs)
    except Exception:
        checkout_sessions_counter.labels(purchase_type=purchase_type, status="failed").inc()
        raise
    checkout_sessions_counter.labels(purchase_type=purchase_type, status="created").inc()
    payments_logger.info(f"Checkout session {session_data['id']} created for {purchase_type}")
    return session_data


def create_contact_checkout(request_id: str, teacher_id: str) -> Dict[str, Any]:
    """Create checkout session for revealing a student's contact details

    Args:
        request_id: ConnectionRequest id being paid for
        teacher_id: Teacher buying the contact

    Returns:
        Dict with session ``id`` and ``url``

    Raises:
        ValidationError: If either identifier is empty
        UpstreamError: If Stripe fails
    """
    request_id = (request_id or "").strip()
    teacher_id = (teacher_id or "").strip()
    if not request_id or not teacher_id:
        raise ValidationError("Request ID and Teacher ID are required")

    logger.info(f"Creating checkout session for contact purchase: request={request_id}, teacher={teacher_id}")

    frontend_url = settings.FRONTEND_URL.rstrip("/")
    return _open_session(
        CONTACT_PURCHASE,
        product_name="Student Contact Information",
        product_description="Access to student contact details for tutoring connection",
        unit_amount=settings.CONTACT_PRICE_PENCE,
        metadata={
            "type": CONTACT_PURCHASE,
            "requestId": request_id,
            "teacherId": teacher_id,
        },
        success_url=(
            f"{frontend_url}/success?session_id={{CHECKOUT_SESSION_ID}}"
            f"&request_id={quote(request_id)}&teacher_id={quote(teacher_id)}"
        ),
        cancel_url=f"{frontend_url}/cancel",
    )


def create_teacher_premium_checkout(teacher_email: str, teacher_name: Optional[str] = None) -> Dict[str, Any]:
    """Create checkout session for the teacher premium showcase

    Raises:
        ValidationError: If the email is empty
        UpstreamError: If Stripe fails
    """
    email = normalize_email(teacher_email)
    if not email:
        raise ValidationError("Teacher email is required")

    logger.info(f"Creating premium checkout session for teacher {email}")

    frontend_url = settings.FRONTEND_URL.rstrip("/")
    return _open_session(
        TEACHER_PREMIUM,
        product_name="Premium Teaching Subscription",
        product_description="Premium subscription with video showcase and direct contact features",
        unit_amount=settings.TEACHER_PREMIUM_PRICE_PENCE,
        metadata={
            "type": TEACHER_PREMIUM,
            "teacherEmail": email,
            "teacherName": _metadata_value(teacher_name),
        },
        success_url=(
            f"{frontend_url}/premium-success?session_id={{CHECKOUT_SESSION_ID}}"
            f"&teacher_email={quote(email)}"
        ),
        cancel_url=f"{frontend_url}/dashboard/teacher?tab=premium&cancelled=true",
        customer_email=email,
    )


def create_student_premium_checkout(
    email: str,
    subject: Optional[str] = None,
    mobile: Optional[str] = None,
    topix: Optional[str] = None,
    description: Optional[str] = None
) -> Dict[str, Any]:
    """Create checkout session for a student premium listing

    The profile fields travel in the session metadata so the webhook can
    create the listing without any other lookup.

    Raises:
        ValidationError: If the email is empty
        UpstreamError: If Stripe fails
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("Student email is required")

    logger.info(f"Creating premium checkout session for student {email}")

    frontend_url = settings.FRONTEND_URL.rstrip("/")
    return _open_session(
        STUDENT_PREMIUM,
        product_name="Premium Student Listing",
        product_description="Premium listing so teachers can find and contact you first",
        unit_amount=settings.STUDENT_PREMIUM_PRICE_PENCE,
        metadata={
            "type": STUDENT_PREMIUM,
            "email": email,
            "subject": _metadata_value(subject),
            "mobile": _metadata_value(mobile),
            "topix": _metadata_value(topix),
            "description": _metadata_value(description),
        },
        success_url=(
            f"{frontend_url}/premium-success?session_id={{CHECKOUT_SESSION_ID}}"
            f"&student_email={quote(email)}"
        ),
        cancel_url=f"{frontend_url}/dashboard/student?tab=premium&cancelled=true",
        customer_email=email,
    )


def _plain_metadata(metadata: Any) -> Dict[str, str]:
    if metadata is None:
        return {}
    if isinstance(metadata, dict):
        return {k: v for k, v in metadata.items()}
    return dict(metadata.to_dict())


def get_payment_status(session_id: str) -> Dict[str, Any]:
    """Read-only payment status for the checkout success page

    Returns:
        Dict with ``paymentStatus``, ``metadata`` and ``paymentType``

    Raises:
        ValidationError: If the session id is empty
        UpstreamError: If Stripe fails
    """
    if not session_id or not session_id.strip():
        raise ValidationError("Session ID is required")

    session = retrieve_checkout_session(session_id.strip())
    metadata = _plain_metadata(get_stripe_value(session, "metadata"))
    return {
        "paymentStatus": get_stripe_value(session, "payment_status"),
        "metadata": metadata,
        "paymentType": metadata.get("type"),
    }
