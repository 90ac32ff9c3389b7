#!/usr/bin/env python3
"""
Create the payment tables and optionally seed sample rows.

Usage:
    # Create tables only
    python scripts/setup_database.py

    # Create tables and insert sample premium records and a pending request
    python scripts/setup_database.py --sample-data
"""

import argparse
import sys
import os
from datetime import datetime, timezone

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from app.db.session import SessionLocal, init_db
from app.models import ConnectionRequest, PremiumStudent, PremiumTeacher

SAMPLE_STUDENT_EMAIL = "student@example.com"
SAMPLE_TEACHER_EMAIL = "teacher@example.com"
SAMPLE_REQUEST_ID = "samplerequest01"


def seed_sample_data(db: Session) -> int:
    """Insert sample rows that are not there yet; returns how many were added"""
    added = 0
    now = datetime.now(timezone.utc)

    if not db.query(PremiumStudent).filter(PremiumStudent.email == SAMPLE_STUDENT_EMAIL).first():
        db.add(PremiumStudent(
            email=SAMPLE_STUDENT_EMAIL,
            subject="Mathematics",
            mobile="+1234567890",
            topix="Algebra, Calculus",
            description="Need help with advanced math topics",
            ispayed=True,
            payment_date=now,
        ))
        added += 1

    if not db.query(PremiumTeacher).filter(PremiumTeacher.mail == SAMPLE_TEACHER_EMAIL).first():
        db.add(PremiumTeacher(
            mail=SAMPLE_TEACHER_EMAIL,
            ispaid=True,
            link_or_video=True,
            link1="https://youtube.com/watch?v=example1",
            link2="https://youtube.com/watch?v=example2",
            link3="",
            payment_date=now,
        ))
        added += 1

    if not db.get(ConnectionRequest, SAMPLE_REQUEST_ID):
        db.add(ConnectionRequest(
            id=SAMPLE_REQUEST_ID,
            student_id="samplestudent01",
            teacher_id="sampleteacher01",
            post_id="samplepost00001",
            message="Hi, I would like help preparing for my exams.",
        ))
        added += 1

    db.commit()
    return added


def main():
    parser = argparse.ArgumentParser(description="Create payment tables")
    parser.add_argument("--sample-data", action="store_true", help="Insert sample rows for testing")
    args = parser.parse_args()

    print("🔧 Setting up database...")
    try:
        init_db()
    except Exception as e:
        print(f"❌ Error setting up database: {e}")
        sys.exit(1)
    print("✅ Tables created or already exist")

    if args.sample_data:
        db = SessionLocal()
        try:
            added = seed_sample_data(db)
            print(f"✅ Sample data inserted ({added} new rows)")
        finally:
            db.close()

    print("🎉 Database setup completed successfully!")


if __name__ == '__main__':
    main()
