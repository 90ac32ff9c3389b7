"""Connection request service - contact purchase state transitions"""
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.connection_request import (
    ConnectionRequest, STATUS_PENDING, STATUS_PURCHASED
)

logger = logging.getLogger(__name__)


def mark_contact_purchased(
    db: Session,
    request_id: str,
    teacher_id: str,
    stripe_session_id: str,
    purchased_at: datetime
) -> None:
    """Reveal a student's contact to the teacher who paid for it

    One UPDATE matched on request id, teacher id and ``pending`` status.
    Does not commit.

    Raises:
        NotFoundError: If nothing matched (a repeated delivery, or a
            request that is missing, rejected or owned by another teacher)
    """
    result = db.execute(
        update(ConnectionRequest)
        .where(
            ConnectionRequest.id == request_id,
            ConnectionRequest.teacher_id == teacher_id,
            ConnectionRequest.status == STATUS_PENDING,
        )
        .values(
            status=STATUS_PURCHASED,
            payment_status="paid",
            contact_revealed=True,
            purchase_date=purchased_at,
            stripe_session_id=stripe_session_id,
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        raise NotFoundError(
            f"No pending connection request {request_id} for teacher {teacher_id}"
        )
    logger.info(f"Connection request {request_id} purchased by teacher {teacher_id}")
