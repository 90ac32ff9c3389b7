"""Database integrity tests"""
import re

import pytest
from sqlalchemy.exc import IntegrityError

from app.models import ConnectionRequest, PremiumStudent, PremiumTeacher, StripeEvent
from app.utils.ids import generate_id, normalize_email
from scripts.setup_database import seed_sample_data


@pytest.mark.critical
class TestNaturalKeyConstraints:
    """Unique constraints back the webhook upserts"""

    def test_premium_teacher_mail_unique(self, db_session):
        """Two teacher records cannot share an email"""
        db_session.add(PremiumTeacher(mail="dup@example.com"))
        db_session.commit()

        db_session.add(PremiumTeacher(mail="dup@example.com"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_premium_student_email_unique(self, db_session):
        db_session.add(PremiumStudent(email="dup@example.com"))
        db_session.commit()

        db_session.add(PremiumStudent(email="dup@example.com"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_stripe_event_id_unique(self, db_session):
        db_session.add(StripeEvent(stripe_event_id="evt_1", event_type="checkout.session.completed", payload={}))
        db_session.commit()

        db_session.add(StripeEvent(stripe_event_id="evt_1", event_type="checkout.session.completed", payload={}))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


@pytest.mark.medium
class TestModelDefaults:
    """Defaults applied on insert"""

    def test_connection_request_defaults(self, db_session):
        request = ConnectionRequest(student_id="s1", teacher_id="t1")
        db_session.add(request)
        db_session.commit()

        assert request.status == "pending"
        assert request.payment_status == "unpaid"
        assert request.contact_revealed is False
        assert re.fullmatch(r"[a-z0-9]{15}", request.id)

    def test_premium_teacher_defaults(self, db_session):
        record = PremiumTeacher(mail="t@example.com")
        db_session.add(record)
        db_session.commit()

        assert record.ispaid is False
        assert record.link_or_video is True
        assert (record.link1, record.link2, record.link3) == ("", "", "")
        assert record.video1 is None

    def test_premium_student_defaults(self, db_session):
        record = PremiumStudent(email="s@example.com")
        db_session.add(record)
        db_session.commit()

        assert record.ispayed is False
        assert record.description == ""


@pytest.mark.medium
class TestIds:
    def test_generate_id_format(self):
        ids = {generate_id() for _ in range(200)}

        assert len(ids) == 200
        assert all(re.fullmatch(r"[a-z0-9]{15}", value) for value in ids)

    @pytest.mark.parametrize("raw,expected", [
        ("A@B.com", "a@b.com"),
        ("  user@Example.COM ", "user@example.com"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_email(self, raw, expected):
        assert normalize_email(raw) == expected


@pytest.mark.medium
class TestSeedSampleData:
    def test_seed_inserts_once(self, db_session):
        assert seed_sample_data(db_session) == 3
        assert seed_sample_data(db_session) == 0

        assert db_session.query(PremiumTeacher).count() == 1
        assert db_session.query(PremiumStudent).count() == 1
        assert db_session.get(ConnectionRequest, "samplerequest01").status == "pending"
