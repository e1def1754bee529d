"""Account provisioning: a user row plus its matching role profile."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendance_api.auth.passwords import hash_password
from attendance_api.core.config import DEFAULT_BCRYPT_ROUNDS
from attendance_api.models.profiles import PROFILE_MODELS
from attendance_api.models.user import AccountStatus, Role, User

logger = logging.getLogger(__name__)


class AccountConflictError(Exception):
    """Raised when an email or profile identifier is already taken."""


def create_account(
    db: Session,
    *,
    email: str,
    password: str,
    name: str,
    role: str,
    profile: dict | None = None,
    status: str = AccountStatus.ACTIVE.value,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> User:
    role = Role(role).value
    status = AccountStatus(status).value
    normalized_email = email.strip().lower()

    if db.query(User.id).filter(User.email == normalized_email).first() is not None:
        raise AccountConflictError(f"An account for {normalized_email} already exists.")

    user = User(
        email=normalized_email,
        password_hash=hash_password(password, rounds),
        name=name.strip(),
        role=role,
        status=status,
    )
    profile_model = PROFILE_MODELS[role]
    setattr(user, role, profile_model(**(profile or {})))

    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AccountConflictError("Account or profile identifier already exists.") from exc
    db.refresh(user)

    logger.info("Provisioned %s account %s", role, normalized_email)
    return user
