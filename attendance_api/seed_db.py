"""Seed the database with demo accounts.

Usage:
    python -m attendance_api.seed_db

Creates one admin, one staff member and five students, all with the password
123456. Emails that already exist are left untouched.
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from attendance_api.accounts import AccountConflictError, create_account
from attendance_api.core.config import ConfigurationError, get_settings
from attendance_api.database import build_engine, build_session_factory, initialize_database

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "123456"
STUDENT_COUNT = 5


def demo_accounts() -> list[dict]:
    accounts = [
        {
            "email": "admin@example.com",
            "name": "System Admin",
            "role": "admin",
            "profile": {"admin_level": "system"},
        },
        {
            "email": "staff@example.com",
            "name": "John Staff",
            "role": "staff",
            "profile": {"employee_id": "EMP001", "department": "Engineering", "position": "Lecturer"},
        },
    ]
    for number in range(1, STUDENT_COUNT + 1):
        accounts.append(
            {
                "email": f"student{number}@example.com",
                "name": f"Student {number}",
                "role": "student",
                "profile": {"student_id": f"STU00{number}", "class_name": "A", "section": "CS", "year": "2025"},
            }
        )
    return accounts


def seed(session_factory, rounds: int) -> list[str]:
    created = []
    db = session_factory()
    try:
        for account in demo_accounts():
            try:
                user = create_account(db, password=DEMO_PASSWORD, rounds=rounds, **account)
            except AccountConflictError:
                logger.info("Skipping %s, already present", account["email"])
                continue
            created.append(user.email)
    finally:
        db.close()
    return created


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    engine = build_engine(settings.database_url, echo=settings.sql_echo)
    try:
        initialize_database(engine)
        created = seed(build_session_factory(engine), settings.bcrypt_rounds)
    except SQLAlchemyError:
        logger.exception("Seeding failed")
        sys.exit(1)
    finally:
        engine.dispose()

    print(f"Seeded {len(created)} account(s).")


if __name__ == "__main__":
    main()
