"""Webhook service - reconciles completed Stripe checkouts into local state"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.config import CONTACT_PURCHASE, TEACHER_PREMIUM, STUDENT_PREMIUM
from app.core.exceptions import NotFoundError
from app.core.logging import webhook_logger
from app.core.metrics import webhook_events_counter, contact_purchases_counter
from app.core.otel import get_tracer
from app.services.connection_service import mark_contact_purchased
from app.services.email_service import send_student_premium_welcome, send_teacher_premium_welcome
from app.services.premium_service import upsert_student_premium, upsert_teacher_premium
from app.services.stripe_service import (
    verify_webhook_event, log_stripe_event, mark_stripe_event_processed
)

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def _paid_at(session: Dict[str, Any], event: Dict[str, Any]) -> datetime:
    """Completion time: the event's creation epoch, identical on every redelivery"""
    created = event.get("created") or session.get("created")
    if created:
        return datetime.fromtimestamp(int(created), tz=timezone.utc)
    return datetime.now(timezone.utc)


def _payment_amount(session: Dict[str, Any]) -> Optional[Decimal]:
    """Convert amount_total from pence to pounds"""
    amount_total = session.get("amount_total")
    if amount_total is None:
        return None
    return (Decimal(int(amount_total)) / Decimal(100)).quantize(Decimal("0.01"))


# ============================================================================
# PURCHASE HANDLERS (no commit; the dispatcher owns the transaction)
# Each returns True when a welcome email is due for the purchase.
# ============================================================================

def handle_contact_purchase(session: Dict[str, Any], event: Dict[str, Any], db: Session) -> bool:
    metadata = session.get("metadata") or {}
    request_id = metadata.get("requestId")
    teacher_id = metadata.get("teacherId")
    if not request_id or not teacher_id:
        webhook_logger.error(f"Missing metadata in contact purchase session {session.get('id')}: {metadata}")
        return False

    try:
        mark_contact_purchased(
            db,
            request_id=request_id,
            teacher_id=teacher_id,
            stripe_session_id=session.get("id"),
            purchased_at=_paid_at(session, event),
        )
    except NotFoundError as e:
        # Repeated delivery, or a request that is no longer pending
        webhook_logger.warning(f"Contact purchase for session {session.get('id')} not applied: {e.message}")
        contact_purchases_counter.labels(result="no_match").inc()
        return False

    contact_purchases_counter.labels(result="updated").inc()
    return False


def handle_teacher_premium(session: Dict[str, Any], event: Dict[str, Any], db: Session) -> bool:
    metadata = session.get("metadata") or {}
    teacher_email = metadata.get("teacherEmail")
    if not teacher_email:
        webhook_logger.error(f"Missing teacher email in premium session {session.get('id')}: {metadata}")
        return False

    return upsert_teacher_premium(
        db,
        email=teacher_email,
        stripe_session_id=session.get("id"),
        payment_amount=_payment_amount(session),
        paid_at=_paid_at(session, event),
    )


def handle_student_premium(session: Dict[str, Any], event: Dict[str, Any], db: Session) -> bool:
    metadata = session.get("metadata") or {}
    student_email = metadata.get("email")
    if not student_email:
        webhook_logger.error(f"Missing student email in premium session {session.get('id')}: {metadata}")
        return False

    return upsert_student_premium(
        db,
        email=student_email,
        stripe_session_id=session.get("id"),
        payment_amount=_payment_amount(session),
        paid_at=_paid_at(session, event),
        profile={
            "subject": metadata.get("subject"),
            "mobile": metadata.get("mobile"),
            "topix": metadata.get("topix"),
            "description": metadata.get("description") or metadata.get("descripton"),
        },
    )


PURCHASE_HANDLERS: Dict[str, Callable[[Dict[str, Any], Dict[str, Any], Session], bool]] = {
    CONTACT_PURCHASE: handle_contact_purchase,
    TEACHER_PREMIUM: handle_teacher_premium,
    STUDENT_PREMIUM: handle_student_premium,
}


def _send_welcome(purchase_type: str, metadata: Dict[str, Any]):
    """Best-effort confirmation email once the premium upsert is committed"""
    if purchase_type == TEACHER_PREMIUM and metadata.get("teacherEmail"):
        send_teacher_premium_welcome(metadata["teacherEmail"], metadata.get("teacherName") or "")
    elif purchase_type == STUDENT_PREMIUM and metadata.get("email"):
        send_student_premium_welcome(metadata["email"], metadata.get("subject") or "")


# ============================================================================
# ENTRY POINT
# ============================================================================

def process_stripe_webhook(
    payload: bytes,
    sig_header: Optional[str],
    db: Session,
    background_tasks: Optional[BackgroundTasks] = None
) -> Dict[str, Any]:
    """Process Stripe webhook event

    Verifies the signature, then acts only on ``checkout.session.completed``
    by dispatching on ``metadata.type``. Returns success even when a
    handler fails, so Stripe does not retry an upsert that cannot succeed.
    Only verification failures raise.

    Args:
        payload: Raw request body as bytes (must not be parsed by middleware)
        sig_header: Stripe signature header
        db: Database session
        background_tasks: Where the welcome email is queued to run after the
            response; sent inline when omitted

    Returns:
        Dict with ``received`` and a ``status`` of success, ignored,
        already_processed or error_logged

    Raises:
        SignatureError: For missing or invalid signatures
        ValidationError: For a verified body that is not an event
    """
    try:
        event = verify_webhook_event(payload, sig_header)
    except Exception:
        webhook_events_counter.labels(event_type="unknown", outcome="rejected").inc()
        raise

    event_id = event["id"]
    event_type = event["type"]

    if event_type != CHECKOUT_COMPLETED:
        webhook_logger.info(f"Ignoring webhook event {event_id} of type {event_type}")
        webhook_events_counter.labels(event_type=event_type, outcome="ignored").inc()
        return {"received": True, "status": "ignored"}

    session = (event.get("data") or {}).get("object") or {}
    metadata = session.get("metadata") or {}
    purchase_type = metadata.get("type")

    webhook_logger.info(
        f"Processing completed checkout {session.get('id')} "
        f"(event {event_id}, type {purchase_type}, payment_status {session.get('payment_status')})"
    )

    # Log event for idempotency
    stripe_event = log_stripe_event(event_id, event_type, event, db, purchase_type=purchase_type)
    if stripe_event.processed:
        logger.info(f"Webhook event {event_id} already processed")
        webhook_events_counter.labels(event_type=event_type, outcome="duplicate").inc()
        return {"received": True, "status": "already_processed"}

    handler = PURCHASE_HANDLERS.get(purchase_type)
    if handler is None:
        webhook_logger.error(f"Unknown payment type '{purchase_type}' in event {event_id}")
        mark_stripe_event_processed(event_id, db, error_message=f"Unknown purchase type: {purchase_type}")
        webhook_events_counter.labels(event_type=event_type, outcome="unknown_type").inc()
        return {"received": True, "status": "ignored"}

    with tracer.start_as_current_span("stripe_webhook.reconcile") as span:
        span.set_attribute("stripe.event_id", event_id)
        span.set_attribute("stripe.purchase_type", purchase_type)
        try:
            send_welcome = handler(session, event, db)
            db.commit()
        except Exception as e:
            # Log error but return success to prevent Stripe retries
            db.rollback()
            logger.error(f"Error processing webhook {event_id}: {e}", exc_info=True)
            span.record_exception(e)
            mark_stripe_event_processed(event_id, db, error_message=str(e))
            webhook_events_counter.labels(event_type=event_type, outcome="error").inc()
            return {"received": True, "status": "error_logged"}

    mark_stripe_event_processed(event_id, db)
    webhook_events_counter.labels(event_type=event_type, outcome="success").inc()
    logger.info(f"Successfully processed webhook event {event_id} ({purchase_type})")

    if send_welcome:
        if background_tasks is not None:
            background_tasks.add_task(_send_welcome, purchase_type, dict(metadata))
        else:
            _send_welcome(purchase_type, dict(metadata))
    return {"received": True, "status": "success"}
