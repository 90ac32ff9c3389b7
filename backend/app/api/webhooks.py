"""Stripe webhook route"""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.exceptions import AppError
from app.db.session import get_db
from app.services.webhook_service import process_stripe_webhook

router = APIRouter(tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.post("/webhook")
async def stripe_webhook(request: Request, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """Handle Stripe webhook events

    Note: This route must be excluded from any global JSON parsing middleware
    to ensure the request body remains as raw bytes for signature verification.
    Processing runs in the threadpool; welcome emails go out after the response.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        return await run_in_threadpool(process_stripe_webhook, payload, sig_header, db, background_tasks)
    except AppError:
        # Verification failures answer 400 so Stripe retries
        raise
    except Exception as e:
        # Unexpected error - log but return 200 to prevent retries
        logger.error(f"Unexpected error processing webhook: {e}", exc_info=True)
        return {"received": True, "status": "error_logged"}
