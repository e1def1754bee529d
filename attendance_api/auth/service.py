"""Credential checking and bearer-token sessions.

Login is resolved through a subject scope: the account scope looks users up
directly, the student scope goes through the student profile joined to its
account. Tokens are stateless JWTs; nothing about a session is stored.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from attendance_api.auth import passwords
from attendance_api.auth.jwt_handler import create_access_token, decode_access_token
from attendance_api.core.config import Settings
from attendance_api.core.errors import (
    AuthenticationError,
    InternalError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    ValidationError,
)
from attendance_api.models.profiles import Student
from attendance_api.models.user import User

logger = logging.getLogger(__name__)


class AccountSubjects:
    kind = "user"
    not_found_message = "User not found"

    def find_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email).first()

    def find_by_id(self, db: Session, subject_id: int) -> User | None:
        return db.query(User).filter(User.id == subject_id).first()

    def account_of(self, record: User) -> User:
        return record

    def login_view(self, record: User) -> dict:
        return record.to_public_dict()

    def profile_view(self, record: User) -> dict:
        return record.to_public_dict()


class StudentSubjects:
    kind = "student"
    not_found_message = "Student not found"

    def _query(self, db: Session):
        return db.query(Student).join(Student.user).options(contains_eager(Student.user))

    def find_by_email(self, db: Session, email: str) -> Student | None:
        return self._query(db).filter(User.email == email).first()

    def find_by_id(self, db: Session, subject_id: int) -> Student | None:
        return self._query(db).filter(Student.id == subject_id).first()

    def account_of(self, record: Student) -> User:
        return record.user

    def login_view(self, record: Student) -> dict:
        return {
            "id": record.id,
            "userId": record.user_id,
            "email": record.user.email,
            "name": record.user.name,
            "role": record.user.role,
        }

    def profile_view(self, record: Student) -> dict:
        return {
            "id": record.id,
            "email": record.user.email,
            "name": record.user.name,
            "role": record.user.role,
            "studentId": record.student_id,
            "class": record.class_name,
            "section": record.section,
            "year": record.year,
        }


@dataclass(frozen=True)
class LoginResult:
    token: str
    subject: dict


@dataclass(frozen=True)
class VerifiedSession:
    claims: dict
    account: User
    profile: dict

    @property
    def role(self) -> str:
        return self.account.role


def extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise MissingTokenError()

    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    if len(parts) == 1 and parts[0].lower() != "bearer":
        return parts[0]
    raise InvalidTokenError()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionService:
    def __init__(
        self,
        db: Session,
        settings: Settings,
        subjects: AccountSubjects | StudentSubjects,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._db = db
        self._settings = settings
        self._subjects = subjects
        self._clock = clock

    @property
    def kind(self) -> str:
        return self._subjects.kind

    def authenticate(self, email: str | None, password: str | None) -> LoginResult:
        normalized_email = (email or "").strip().lower()
        if not normalized_email or not password:
            raise ValidationError("Email and password are required")

        try:
            record = self._subjects.find_by_email(self._db, normalized_email)
        except SQLAlchemyError as exc:
            logger.exception("Credential lookup failed for %s login", self.kind)
            raise InternalError("credential lookup failed") from exc

        if record is None:
            # Spend the same hashing time as a real comparison.
            self._check_password(password, passwords.dummy_hash(self._settings.bcrypt_rounds))
            logger.info("Rejected %s login for unknown email %s", self.kind, normalized_email)
            raise AuthenticationError()

        account = self._subjects.account_of(record)
        if not self._check_password(password, account.password_hash):
            logger.info("Rejected %s login for %s: password mismatch", self.kind, normalized_email)
            raise AuthenticationError()

        claims = {
            "sub": str(record.id),
            "kind": self.kind,
            "email": account.email,
            "role": account.role,
        }
        token = create_access_token(claims, self._settings, issued_at=self._clock())
        logger.info("Issued %s token for %s", self.kind, account.email)
        return LoginResult(token=token, subject=self._subjects.login_view(record))

    def verify(self, authorization: str | None) -> VerifiedSession:
        token = extract_bearer_token(authorization)

        try:
            claims = decode_access_token(token, self._settings)
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc

        if claims.get("kind") != self.kind:
            raise InvalidTokenError()
        try:
            subject_id = int(claims["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc

        try:
            record = self._subjects.find_by_id(self._db, subject_id)
        except SQLAlchemyError as exc:
            logger.exception("Subject lookup failed for %s token", self.kind)
            raise InternalError("subject lookup failed") from exc

        if record is None:
            raise NotFoundError(self._subjects.not_found_message)

        return VerifiedSession(
            claims=claims,
            account=self._subjects.account_of(record),
            profile=self._subjects.profile_view(record),
        )

    def _check_password(self, password: str, hashed: str) -> bool:
        try:
            return passwords.verify_password(password, hashed)
        except ValueError as exc:
            logger.exception("Stored password hash is unusable for %s login", self.kind)
            raise InternalError("password hash comparison failed") from exc
