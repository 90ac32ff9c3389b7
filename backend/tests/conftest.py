"""Shared pytest fixtures for test suite"""
import hashlib
import hmac
import json
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, Generator, Optional
from unittest.mock import Mock, patch

import pytest

# Test configuration must be in place before app settings are imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_PUBLISHABLE_KEY"] = "pk_test_dummy"
os.environ["RESEND_API_KEY"] = ""
os.environ["OTEL_EXPORTER_OTLP_ENDPOINT"] = ""

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.session import get_db
from app.models import Base
from app.models.connection_request import ConnectionRequest
from app.models.premium_teacher import PremiumTeacher


WEBHOOK_SECRET = "whsec_test_secret"

# SQLite in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# Create test engine with StaticPool for in-memory database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh SQLite in-memory database session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """FastAPI test client bound to the test database"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close session here, handled by fixture

    app.dependency_overrides[get_db] = override_get_db

    try:
        # Tables are managed by db_session; skip startup create_all on the app engine
        with patch('app.main.init_db'):
            with patch('app.main.initialize_otel', return_value=False):
                with TestClient(app) as test_client:
                    yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function", autouse=True)
def mock_stripe_checkout():
    """Keep every test off the network: Stripe checkout calls are mocked"""
    with patch("stripe.checkout.Session.create") as mock_create:
        with patch("stripe.checkout.Session.retrieve") as mock_retrieve:
            mock_create.return_value = Mock(
                id="cs_test123",
                url="https://checkout.stripe.com/c/pay/cs_test123"
            )
            mock_retrieve.return_value = Mock(
                id="cs_test123",
                payment_status="paid",
                metadata={"type": "contact_purchase", "requestId": "r1", "teacherId": "t1"}
            )
            yield Mock(create=mock_create, retrieve=mock_retrieve)


@pytest.fixture(scope="function")
def mock_email_service():
    """Mock Resend so no email leaves the test run"""
    with patch('app.services.email_service.resend') as mock_resend:
        mock_resend.Emails.send = Mock(return_value={"id": "email_test123"})
        yield mock_resend


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a stripe-signature header the way Stripe signs webhook bodies"""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def checkout_event():
    """Factory for checkout.session.completed events"""

    def _make(
        metadata: Dict[str, Any],
        session_id: str = "cs_test123",
        event_id: str = "evt_test123",
        amount_total: Optional[int] = 4900,
        created: int = 1760000000,
        event_type: str = "checkout.session.completed",
        event_created: Optional[int] = None
    ) -> Dict[str, Any]:
        """``created`` is when the session opened; ``event_created`` when it completed"""
        return {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "created": event_created or created,
            "data": {
                "object": {
                    "id": session_id,
                    "object": "checkout.session",
                    "amount_total": amount_total,
                    "created": created,
                    "currency": "gbp",
                    "payment_status": "paid",
                    "metadata": metadata,
                }
            },
        }

    return _make


@pytest.fixture
def post_webhook(client: TestClient):
    """Send an event to /webhook with a valid (or overridden) signature"""

    def _post(event: Dict[str, Any], signature: Optional[str] = None, secret: str = WEBHOOK_SECRET):
        payload = json.dumps(event).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        headers["stripe-signature"] = signature if signature is not None else sign_payload(payload, secret)
        return client.post("/webhook", content=payload, headers=headers)

    return _post


@pytest.fixture(scope="function")
def pending_request(db_session: Session) -> ConnectionRequest:
    """A pending connection request r1 from student s1 to teacher t1"""
    request = ConnectionRequest(
        id="r1",
        student_id="s1",
        teacher_id="t1",
        post_id="p1",
        message="Can you help with GCSE maths?",
    )
    db_session.add(request)
    db_session.commit()
    db_session.refresh(request)
    return request


@pytest.fixture(scope="function")
def paid_teacher(db_session: Session) -> PremiumTeacher:
    """A paid premium teacher in link mode"""
    record = PremiumTeacher(
        mail="teacher@example.com",
        ispaid=True,
        link_or_video=True,
        link1="https://youtube.com/watch?v=old1",
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record
