"""Tests for service layer functions"""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest
import stripe

from app.core.exceptions import NotFoundError, PermissionDeniedError, UpstreamError, ValidationError
from app.models import ConnectionRequest, PremiumStudent, PremiumTeacher
from app.services.checkout_service import (
    create_contact_checkout, create_teacher_premium_checkout,
    create_student_premium_checkout, get_payment_status
)
from app.services.connection_service import mark_contact_purchased
from app.services.premium_service import (
    upsert_teacher_premium, upsert_student_premium,
    get_teacher_premium_status, get_student_premium_status, update_teacher_content
)

PAID_AT = datetime(2025, 10, 9, 12, 0, tzinfo=timezone.utc)


@pytest.mark.critical
class TestPremiumUpserts:
    """Natural-key upserts used by the webhook handlers"""

    def test_teacher_upsert_twice_keeps_one_row(self, db_session):
        upsert_teacher_premium(db_session, "t@example.com", "cs_1", Decimal("49.00"), PAID_AT)
        upsert_teacher_premium(db_session, "T@Example.com", "cs_2", Decimal("39.00"), PAID_AT)
        db_session.commit()

        record = db_session.query(PremiumTeacher).one()
        assert record.mail == "t@example.com"
        assert record.stripe_session_id == "cs_2"
        assert record.payment_amount == Decimal("39.00")

    def test_upsert_reports_new_session(self, db_session):
        assert upsert_teacher_premium(db_session, "t@example.com", "cs_1", Decimal("49.00"), PAID_AT) is True
        db_session.commit()

        assert upsert_teacher_premium(db_session, "t@example.com", "cs_1", Decimal("49.00"), PAID_AT) is False
        assert upsert_teacher_premium(db_session, "t@example.com", "cs_2", Decimal("49.00"), PAID_AT) is True

    def test_student_upsert_reports_new_session(self, db_session):
        assert upsert_student_premium(db_session, "s@example.com", "cs_1", Decimal("15.00"), PAID_AT) is True
        db_session.commit()

        assert upsert_student_premium(db_session, "s@example.com", "cs_1", Decimal("15.00"), PAID_AT) is False

    def test_teacher_upsert_does_not_commit(self, db_session):
        upsert_teacher_premium(db_session, "t@example.com", "cs_1", Decimal("49.00"), PAID_AT)
        db_session.rollback()

        assert db_session.query(PremiumTeacher).count() == 0

    def test_student_upsert_sets_profile_on_insert(self, db_session):
        upsert_student_premium(
            db_session, "s@example.com", "cs_1", Decimal("15.00"), PAID_AT,
            profile={"subject": "Chemistry", "mobile": None}
        )
        db_session.commit()

        record = db_session.query(PremiumStudent).one()
        assert record.subject == "Chemistry"
        assert record.mobile == ""
        assert record.topix == ""
        assert record.ispayed is True

    def test_student_upsert_only_overwrites_non_empty_profile(self, db_session):
        upsert_student_premium(
            db_session, "s@example.com", "cs_1", Decimal("15.00"), PAID_AT,
            profile={"subject": "Chemistry", "mobile": "0123", "topix": "Organic", "description": "A level"}
        )
        upsert_student_premium(
            db_session, "s@example.com", "cs_2", Decimal("15.00"), PAID_AT,
            profile={"subject": "", "mobile": "0456"}
        )
        db_session.commit()
        db_session.expire_all()

        record = db_session.query(PremiumStudent).one()
        assert record.subject == "Chemistry"
        assert record.mobile == "0456"
        assert record.description == "A level"
        assert record.stripe_session_id == "cs_2"


@pytest.mark.critical
class TestPremiumStatus:
    """Status queries never create records"""

    def test_missing_teacher_is_unpaid_and_not_created(self, db_session):
        result = get_teacher_premium_status(db_session, "nobody@example.com")

        assert result == {"hasPremium": False, "isPaid": False, "premiumData": None}
        assert db_session.query(PremiumTeacher).count() == 0

    def test_missing_student_is_unpaid_and_not_created(self, db_session):
        result = get_student_premium_status(db_session, "nobody@example.com")

        assert result == {"hasPremium": False, "isPaid": False, "premiumData": None}
        assert db_session.query(PremiumStudent).count() == 0

    def test_paid_teacher_status(self, db_session, paid_teacher):
        result = get_teacher_premium_status(db_session, " TEACHER@example.com")

        assert result["hasPremium"] is True
        assert result["isPaid"] is True
        assert result["premiumData"]["mail"] == "teacher@example.com"
        assert result["premiumData"]["link1"] == "https://youtube.com/watch?v=old1"

    def test_paid_student_status(self, db_session):
        upsert_student_premium(db_session, "s@example.com", "cs_1", Decimal("15.00"), PAID_AT)
        db_session.commit()

        result = get_student_premium_status(db_session, "s@example.com")

        assert result["isPaid"] is True
        assert result["premiumData"]["paymentAmount"] == 15.0
        assert result["premiumData"]["stripeSessionId"] == "cs_1"

    def test_blank_email_rejected(self, db_session):
        with pytest.raises(ValidationError):
            get_teacher_premium_status(db_session, "   ")


@pytest.mark.critical
class TestUpdateTeacherContent:
    """Content writes are gated on a paid record"""

    def test_paid_teacher_updates_links(self, db_session, paid_teacher):
        result = update_teacher_content(db_session, "teacher@example.com", {
            "link1": "https://youtube.com/watch?v=new1",
            "link2": "https://youtube.com/watch?v=new2",
        })

        assert result["link1"] == "https://youtube.com/watch?v=new1"
        assert result["link2"] == "https://youtube.com/watch?v=new2"
        assert result["link3"] == ""
        assert result["link_or_video"] is True

    def test_switch_to_video_mode_leaves_links(self, db_session, paid_teacher):
        result = update_teacher_content(db_session, "teacher@example.com", {
            "link_or_video": False,
            "video1": "videos/intro.mp4",
        })

        assert result["link_or_video"] is False
        assert result["video1"] == "videos/intro.mp4"
        assert result["video2"] is None
        assert result["link1"] == "https://youtube.com/watch?v=old1"

    def test_unpaid_teacher_refused(self, db_session):
        db_session.add(PremiumTeacher(mail="unpaid@example.com", ispaid=False))
        db_session.commit()

        with pytest.raises(PermissionDeniedError):
            update_teacher_content(db_session, "unpaid@example.com", {"link1": "https://example.com/x"})

        db_session.expire_all()
        assert db_session.query(PremiumTeacher).one().link1 == ""

    def test_missing_teacher_refused_without_creating(self, db_session):
        with pytest.raises(PermissionDeniedError):
            update_teacher_content(db_session, "ghost@example.com", {"link1": "https://example.com/x"})

        assert db_session.query(PremiumTeacher).count() == 0


@pytest.mark.critical
class TestMarkContactPurchased:
    """pending → purchased transition"""

    def test_pending_request_updated(self, db_session, pending_request):
        mark_contact_purchased(db_session, "r1", "t1", "cs_1", PAID_AT)
        db_session.commit()
        db_session.expire_all()

        request = db_session.get(ConnectionRequest, "r1")
        assert request.status == "purchased"
        assert request.contact_revealed is True
        assert request.stripe_session_id == "cs_1"

    def test_second_call_raises_not_found(self, db_session, pending_request):
        mark_contact_purchased(db_session, "r1", "t1", "cs_1", PAID_AT)
        db_session.commit()

        with pytest.raises(NotFoundError):
            mark_contact_purchased(db_session, "r1", "t1", "cs_2", PAID_AT)

        db_session.expire_all()
        assert db_session.get(ConnectionRequest, "r1").stripe_session_id == "cs_1"

    def test_wrong_teacher_raises_not_found(self, db_session, pending_request):
        with pytest.raises(NotFoundError):
            mark_contact_purchased(db_session, "r1", "t9", "cs_1", PAID_AT)

    def test_missing_request_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            mark_contact_purchased(db_session, "nosuchrequest", "t1", "cs_1", PAID_AT)


@pytest.mark.high
class TestCheckoutService:
    """Checkout session creation with the Stripe SDK mocked"""

    def test_contact_checkout_metadata(self, mock_stripe_checkout):
        result = create_contact_checkout("r1", "t1")

        assert result == {"id": "cs_test123", "url": "https://checkout.stripe.com/c/pay/cs_test123"}
        params = mock_stripe_checkout.create.call_args.kwargs
        assert params["metadata"] == {"type": "contact_purchase", "requestId": "r1", "teacherId": "t1"}
        assert params["mode"] == "payment"
        assert params["line_items"][0]["price_data"]["unit_amount"] == 700
        assert params["line_items"][0]["price_data"]["currency"] == "gbp"
        assert "request_id=r1" in params["success_url"]

    @pytest.mark.parametrize("request_id,teacher_id", [("", "t1"), ("r1", ""), ("  ", "t1")])
    def test_contact_checkout_requires_ids(self, mock_stripe_checkout, request_id, teacher_id):
        with pytest.raises(ValidationError):
            create_contact_checkout(request_id, teacher_id)

        mock_stripe_checkout.create.assert_not_called()

    def test_teacher_premium_checkout(self, mock_stripe_checkout):
        create_teacher_premium_checkout("Teacher@Example.com", "Ada")

        params = mock_stripe_checkout.create.call_args.kwargs
        assert params["metadata"]["type"] == "premium_subscription"
        assert params["metadata"]["teacherEmail"] == "teacher@example.com"
        assert params["customer_email"] == "teacher@example.com"
        assert params["line_items"][0]["price_data"]["unit_amount"] == 4900

    def test_student_premium_checkout_carries_profile(self, mock_stripe_checkout):
        create_student_premium_checkout(
            "s@example.com", subject="Maths", mobile="0123", topix="Algebra", description="x" * 600
        )

        metadata = mock_stripe_checkout.create.call_args.kwargs["metadata"]
        assert metadata["type"] == "student_premium_subscription"
        assert metadata["subject"] == "Maths"
        assert len(metadata["description"]) == 500
        assert mock_stripe_checkout.create.call_args.kwargs["line_items"][0]["price_data"]["unit_amount"] == 1500

    def test_stripe_failure_becomes_upstream_error(self, mock_stripe_checkout):
        mock_stripe_checkout.create.side_effect = stripe.APIConnectionError("Request timed out")

        with pytest.raises(UpstreamError):
            create_contact_checkout("r1", "t1")

    def test_payment_status(self, mock_stripe_checkout):
        result = get_payment_status("cs_test123")

        assert result["paymentStatus"] == "paid"
        assert result["paymentType"] == "contact_purchase"
        assert result["metadata"]["requestId"] == "r1"

    def test_payment_status_unpaid_session(self, mock_stripe_checkout):
        mock_stripe_checkout.retrieve.return_value = Mock(
            payment_status="unpaid",
            metadata={"type": "premium_subscription", "teacherEmail": "t@example.com"}
        )

        result = get_payment_status("cs_open")

        assert result["paymentStatus"] == "unpaid"
        assert result["paymentType"] == "premium_subscription"
