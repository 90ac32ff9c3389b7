"""Create connection_requests, premium_teachers, premium_students and stripe_events

Revision ID: 001
Revises: 
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tables may already exist when create_all ran first on startup
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    if 'connection_requests' not in existing_tables:
        op.create_table(
            'connection_requests',
            sa.Column('id', sa.String(length=15), nullable=False),
            sa.Column('student_id', sa.String(length=15), nullable=False),
            sa.Column('teacher_id', sa.String(length=15), nullable=False),
            sa.Column('post_id', sa.String(length=15), nullable=True),
            sa.Column('message', sa.Text(), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('payment_status', sa.String(length=20), nullable=False),
            sa.Column('contact_revealed', sa.Boolean(), nullable=False),
            sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('stripe_session_id', sa.String(length=255), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_connection_requests_student_id', 'connection_requests', ['student_id'])
        op.create_index('ix_connection_requests_teacher_id', 'connection_requests', ['teacher_id'])
        op.create_index('ix_connection_requests_post_id', 'connection_requests', ['post_id'])

    if 'premium_teachers' not in existing_tables:
        op.create_table(
            'premium_teachers',
            sa.Column('id', sa.String(length=15), nullable=False),
            sa.Column('mail', sa.String(length=255), nullable=False),
            sa.Column('ispaid', sa.Boolean(), nullable=False),
            sa.Column('link_or_video', sa.Boolean(), nullable=False),
            sa.Column('link1', sa.Text(), nullable=False),
            sa.Column('link2', sa.Text(), nullable=False),
            sa.Column('link3', sa.Text(), nullable=False),
            sa.Column('video1', sa.String(length=255), nullable=True),
            sa.Column('video2', sa.String(length=255), nullable=True),
            sa.Column('video3', sa.String(length=255), nullable=True),
            sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('stripe_session_id', sa.String(length=255), nullable=True),
            sa.Column('payment_amount', sa.Numeric(precision=10, scale=2), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_premium_teachers_mail', 'premium_teachers', ['mail'], unique=True)

    if 'premium_students' not in existing_tables:
        op.create_table(
            'premium_students',
            sa.Column('id', sa.String(length=15), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('subject', sa.Text(), nullable=False),
            sa.Column('mobile', sa.String(length=50), nullable=False),
            sa.Column('topix', sa.Text(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('ispayed', sa.Boolean(), nullable=False),
            sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('stripe_session_id', sa.String(length=255), nullable=True),
            sa.Column('payment_amount', sa.Numeric(precision=10, scale=2), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_premium_students_email', 'premium_students', ['email'], unique=True)

    if 'stripe_events' not in existing_tables:
        op.create_table(
            'stripe_events',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('stripe_event_id', sa.String(length=255), nullable=False),
            sa.Column('event_type', sa.String(length=100), nullable=False),
            sa.Column('purchase_type', sa.String(length=50), nullable=True),
            sa.Column('processed', sa.Boolean(), nullable=False),
            sa.Column('payload', sa.JSON(), nullable=False),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_stripe_events_id', 'stripe_events', ['id'])
        op.create_index('ix_stripe_events_stripe_event_id', 'stripe_events', ['stripe_event_id'], unique=True)
        op.create_index('ix_stripe_events_event_type', 'stripe_events', ['event_type'])


def downgrade() -> None:
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    for table in ('stripe_events', 'premium_students', 'premium_teachers', 'connection_requests'):
        if table in existing_tables:
            op.drop_table(table)
