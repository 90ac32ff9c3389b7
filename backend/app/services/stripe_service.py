"""Stripe service - thin wrapper around the Stripe SDK calls this app makes"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe
from stripe import SignatureVerificationError, StripeError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import SignatureError, UpstreamError, ValidationError
from app.models.stripe_event import StripeEvent

logger = logging.getLogger(__name__)


def configure_stripe():
    """Configure the SDK: API key, bounded timeout, no retries in the request path"""
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.max_network_retries = 0
    stripe.default_http_client = stripe.RequestsClient(timeout=settings.STRIPE_API_TIMEOUT)


# Configure Stripe
configure_stripe()


# ============================================================================
# CHECKOUT SESSIONS
# ============================================================================

def create_checkout_session(
    product_name: str,
    product_description: str,
    unit_amount: int,
    metadata: Dict[str, str],
    success_url: str,
    cancel_url: str,
    customer_email: Optional[str] = None
) -> Dict[str, Any]:
    """Create a one-off payment checkout session

    Args:
        product_name: Name shown on the Stripe checkout page
        product_description: Description shown on the checkout page
        unit_amount: Price in minor currency units (pence)
        metadata: Purchase envelope echoed back on the webhook
        success_url: Redirect after successful payment
        cancel_url: Redirect after cancellation
        customer_email: Prefills the payer's email when given

    Returns:
        Dict with session ``id`` and hosted checkout ``url``

    Raises:
        UpstreamError: If Stripe rejects the call or does not answer in time
    """
    checkout_params = {
        "payment_method_types": ["card"],
        "line_items": [{
            "price_data": {
                "currency": settings.PAYMENT_CURRENCY,
                "product_data": {
                    "name": product_name,
                    "description": product_description,
                },
                "unit_amount": unit_amount,
            },
            "quantity": 1,
        }],
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
    }
    if customer_email:
        checkout_params["customer_email"] = customer_email

    try:
        session = stripe.checkout.Session.create(**checkout_params)
    except StripeError as e:
        logger.error(f"Stripe checkout session creation failed ({metadata.get('type')}): {e}")
        raise UpstreamError("Failed to create checkout session") from e

    return {"id": session.id, "url": session.url}


def retrieve_checkout_session(session_id: str) -> Any:
    """Fetch a checkout session from Stripe

    Raises:
        UpstreamError: If Stripe rejects the call or does not answer in time
    """
    try:
        return stripe.checkout.Session.retrieve(session_id)
    except StripeError as e:
        logger.error(f"Error retrieving checkout session {session_id}: {e}")
        raise UpstreamError("Failed to check payment status") from e


# ============================================================================
# WEBHOOK VERIFICATION & EVENT LOGGING
# ============================================================================

def verify_webhook_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """Verify a webhook signature against the raw body and decode the event

    Args:
        payload: Raw request body as bytes (must not be parsed by middleware)
        sig_header: Value of the ``stripe-signature`` header

    Returns:
        The verified ``stripe.Event`` (a dict of nested dicts)

    Raises:
        SignatureError: Missing secret or header, or signature mismatch
        ValidationError: Body verified but is not a JSON event
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("Webhook secret not configured")
        raise SignatureError("Webhook secret not configured")
    if not sig_header:
        raise SignatureError("Missing stripe-signature header")

    try:
        event = stripe.Webhook.construct_event(
            payload, sig_header, settings.STRIPE_WEBHOOK_SECRET, settings.STRIPE_WEBHOOK_TOLERANCE
        )
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise ValidationError("Invalid payload") from e
    except SignatureVerificationError as e:
        logger.error(f"Invalid webhook signature: {e}")
        raise SignatureError("Invalid signature") from e

    if not event.get("id") or not event.get("type"):
        raise ValidationError("Invalid payload")
    return event


def log_stripe_event(event_id: str, event_type: str, payload: dict, db: Session,
                     purchase_type: Optional[str] = None) -> StripeEvent:
    stripe_event = db.query(StripeEvent).filter(StripeEvent.stripe_event_id == event_id).first()
    if not stripe_event:
        stripe_event = StripeEvent(
            stripe_event_id=event_id,
            event_type=event_type,
            purchase_type=purchase_type,
            payload=payload,
            processed=False
        )
        db.add(stripe_event)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent delivery of the same event logged it first
            db.rollback()
            return db.query(StripeEvent).filter(StripeEvent.stripe_event_id == event_id).one()
        db.refresh(stripe_event)
    return stripe_event


def mark_stripe_event_processed(event_id: str, db: Session, error_message: str = None):
    stripe_event = db.query(StripeEvent).filter(StripeEvent.stripe_event_id == event_id).first()
    if stripe_event:
        stripe_event.processed = True
        stripe_event.processed_at = datetime.now(timezone.utc)
        stripe_event.error_message = error_message
        db.commit()


# ============================================================================
# STRIPE OBJECT ACCESS HELPER
# ============================================================================

def get_stripe_value(obj: Any, key: str, default=None):
    """Safely extract value from Stripe object (supports both dict and attribute access)."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(key, default)
        return default if value is None else value
    value = getattr(obj, key, None)
    return default if value is None else value
