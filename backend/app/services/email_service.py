"""Email service - transactional email via Resend"""
import logging
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)


def _send_email(to: str, subject: str, html: str) -> bool:
    """
    Internal helper function to send email via Resend API.

    Args:
        to: Recipient email address
        subject: Email subject
        html: HTML email content

    Returns:
        bool: True on success, False on failure
    """
    if not settings.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY is not set; skipping email")
        return False

    try:
        resend.api_key = settings.RESEND_API_KEY

        response = resend.Emails.send(
            {
                "from": settings.RESEND_FROM_EMAIL,
                "to": to,
                "subject": subject,
                "html": html,
            }
        )

        # Resend returns a dict with 'id' on success
        email_id = None
        if isinstance(response, dict):
            email_id = response.get('id')
        elif hasattr(response, 'id'):
            email_id = response.id

        if email_id:
            logger.info(f"Email sent successfully to {to} (id: {email_id})")
            return True
        logger.error(f"Email send returned invalid response: {response}")
        return False

    except Exception as exc:
        logger.error(f"Failed to send email to {to}: {exc}", exc_info=True)
        return False


def send_teacher_premium_welcome(email: str, teacher_name: str = "") -> bool:
    """
    Confirm a teacher's premium payment and point them at the showcase editor.

    Returns:
        bool: True on success, False on failure
    """
    greeting = f"Hi {escape(teacher_name)}," if teacher_name else "Hi,"
    dashboard_link = f"{settings.FRONTEND_URL.rstrip('/')}/dashboard/teacher?tab=premium"
    html = f"""
    <p>{greeting}</p>
    <p>Your premium teaching subscription is now active.</p>
    <p>Add up to three video links to your showcase from your
    <a href="{dashboard_link}">dashboard</a>.</p>
    """
    return _send_email(email, "Your premium subscription is active", html)


def send_student_premium_welcome(email: str, subject: str = "") -> bool:
    """
    Confirm a student's premium listing payment.

    Returns:
        bool: True on success, False on failure
    """
    subject_line = f" for {escape(subject)}" if subject else ""
    html = f"""
    <p>Hi,</p>
    <p>Your premium listing{subject_line} is now live. Teachers will be able to
    see your request first and contact you directly.</p>
    """
    return _send_email(email, "Your premium listing is live", html)
