"""Checkout API routes - open Stripe checkout sessions for each purchase type"""
import logging
from fastapi import APIRouter, HTTPException

from app.core.config import settings
from app.schemas.payments import (
    ContactCheckoutRequest, TeacherPremiumCheckoutRequest,
    StudentPremiumCheckoutRequest, CheckoutSessionResponse
)
from app.services.checkout_service import (
    create_contact_checkout, create_teacher_premium_checkout,
    create_student_premium_checkout, get_payment_status
)

router = APIRouter(tags=["checkout"])
logger = logging.getLogger(__name__)


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
def create_contact_checkout_route(checkout_request: ContactCheckoutRequest):
    """Create checkout session for a contact purchase"""
    return create_contact_checkout(checkout_request.request_id, checkout_request.teacher_id)


@router.post("/create-premium-checkout-session", response_model=CheckoutSessionResponse)
def create_premium_checkout_route(checkout_request: TeacherPremiumCheckoutRequest):
    """Create checkout session for the teacher premium subscription"""
    return create_teacher_premium_checkout(
        checkout_request.teacher_email,
        checkout_request.teacher_name
    )


@router.post("/create-student-premium-checkout-session", response_model=CheckoutSessionResponse)
def create_student_premium_checkout_route(checkout_request: StudentPremiumCheckoutRequest):
    """Create checkout session for a student premium listing"""
    student = checkout_request.student_data
    return create_student_premium_checkout(
        student.email,
        subject=student.subject,
        mobile=student.mobile,
        topix=student.topix,
        description=student.description
    )


@router.get("/check-payment/{session_id}")
def check_payment_route(session_id: str):
    """Payment status of a checkout session, for the success page"""
    return get_payment_status(session_id)


@router.get("/stripe/config")
def get_stripe_config():
    """Get Stripe publishable key for frontend"""
    publishable_key = settings.STRIPE_PUBLISHABLE_KEY
    if not publishable_key:
        raise HTTPException(500, "Stripe not configured")
    return {"publishable_key": publishable_key}
