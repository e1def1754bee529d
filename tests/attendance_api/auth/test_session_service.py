from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy.exc import OperationalError

from attendance_api.auth.jwt_handler import create_access_token, decode_access_token
from attendance_api.auth.service import (
    AccountSubjects,
    SessionService,
    StudentSubjects,
    extract_bearer_token,
)
from attendance_api.core.errors import (
    AuthenticationError,
    InternalError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    ValidationError,
)
from attendance_api.models.user import User


def _student_service(db, settings, clock=None) -> SessionService:
    if clock is None:
        return SessionService(db, settings, StudentSubjects())
    return SessionService(db, settings, StudentSubjects(), clock=clock)


def _account_service(db, settings) -> SessionService:
    return SessionService(db, settings, AccountSubjects())


def test_student_login_issues_token_with_identity_claims(db, settings, accounts) -> None:
    result = _student_service(db, settings).authenticate('student1@example.com', '123456')

    claims = decode_access_token(result.token, settings)
    student = accounts['student'].student
    assert claims['email'] == 'student1@example.com'
    assert claims['role'] == 'student'
    assert claims['kind'] == 'student'
    assert claims['sub'] == str(student.id)
    assert claims['exp'] - claims['iat'] == 24 * 60 * 60
    assert result.subject == {
        'id': student.id,
        'userId': accounts['student'].id,
        'email': 'student1@example.com',
        'name': 'Student 1',
        'role': 'student',
    }


def test_account_login_returns_sanitized_user(db, settings, accounts) -> None:
    result = _account_service(db, settings).authenticate(' Admin@Example.com ', '123456')

    assert result.subject == {
        'id': accounts['admin'].id,
        'email': 'admin@example.com',
        'name': 'System Admin',
        'role': 'admin',
        'status': 'active',
    }
    assert 'password' not in result.subject
    assert 'password_hash' not in result.subject


@pytest.mark.parametrize(
    ('email', 'password'),
    [
        (None, '123456'),
        ('student1@example.com', None),
        ('   ', '123456'),
        ('student1@example.com', ''),
    ],
)
def test_authenticate_requires_email_and_password(db, settings, accounts, email, password) -> None:
    with pytest.raises(ValidationError) as exception_info:
        _student_service(db, settings).authenticate(email, password)

    assert exception_info.value.status_code == 400
    assert exception_info.value.public_message == 'Email and password are required'


def test_unknown_email_and_wrong_password_are_indistinguishable(db, settings, accounts) -> None:
    service = _student_service(db, settings)

    with pytest.raises(AuthenticationError) as wrong_password:
        service.authenticate('student1@example.com', 'wrong')
    with pytest.raises(AuthenticationError) as unknown_email:
        service.authenticate('nobody@example.com', '123456')

    assert wrong_password.value.status_code == unknown_email.value.status_code == 401
    assert wrong_password.value.public_message == unknown_email.value.public_message == 'Invalid credentials'
    assert str(wrong_password.value) == str(unknown_email.value)


def test_student_scope_does_not_accept_non_student_accounts(db, settings, accounts) -> None:
    with pytest.raises(AuthenticationError):
        _student_service(db, settings).authenticate('staff@example.com', '123456')


def test_overlong_password_never_matches(db, settings, accounts) -> None:
    with pytest.raises(AuthenticationError):
        _student_service(db, settings).authenticate('student1@example.com', '123456' + 'x' * 80)


@pytest.mark.parametrize('email', ['student1@example.com', 'nobody@example.com'])
def test_unencodable_password_is_rejected_as_bad_credentials(db, settings, accounts, email, caplog) -> None:
    with pytest.raises(AuthenticationError) as exception_info:
        _student_service(db, settings).authenticate(email, '\ud800')

    assert exception_info.value.public_message == 'Invalid credentials'
    assert 'Stored password hash is unusable' not in caplog.text


def test_unusable_stored_hash_surfaces_as_internal_error(db, settings, accounts) -> None:
    accounts['student'].password_hash = 'not-a-bcrypt-hash'
    db.commit()

    with pytest.raises(InternalError) as exception_info:
        _student_service(db, settings).authenticate('student1@example.com', '123456')

    assert exception_info.value.status_code == 500
    assert exception_info.value.public_message == 'Internal server error'


def test_datastore_failure_surfaces_as_internal_error(db, settings, monkeypatch) -> None:
    def broken_lookup(self, _db, _email):
        raise OperationalError('SELECT', {}, Exception('connection refused'))

    monkeypatch.setattr(StudentSubjects, 'find_by_email', broken_lookup)

    with pytest.raises(InternalError) as exception_info:
        _student_service(db, settings).authenticate('student1@example.com', '123456')

    assert 'connection refused' not in exception_info.value.public_message


def test_verify_returns_current_student_profile(db, settings, accounts) -> None:
    service = _student_service(db, settings)
    token = service.authenticate('student1@example.com', '123456').token

    session = service.verify(f'Bearer {token}')

    assert session.role == 'student'
    assert session.profile == {
        'id': accounts['student'].student.id,
        'email': 'student1@example.com',
        'name': 'Student 1',
        'role': 'student',
        'studentId': 'STU001',
        'class': 'A',
        'section': 'CS',
        'year': '2025',
    }


def test_verify_accepts_bare_token(db, settings, accounts) -> None:
    service = _account_service(db, settings)
    token = service.authenticate('staff@example.com', '123456').token

    assert service.verify(token).profile['email'] == 'staff@example.com'


@pytest.mark.parametrize('header', [None, '', '   '])
def test_verify_without_token_raises_missing_token(db, settings, header) -> None:
    with pytest.raises(MissingTokenError) as exception_info:
        _student_service(db, settings).verify(header)

    assert exception_info.value.public_message == 'No token provided'


@pytest.mark.parametrize('header', ['Bearer', 'Bearer a b', 'Basic dXNlcjpwYXNz', 'Bearer not-a-jwt', 'garbage'])
def test_verify_with_malformed_header_raises_invalid_token(db, settings, header) -> None:
    with pytest.raises(InvalidTokenError) as exception_info:
        _student_service(db, settings).verify(header)

    assert exception_info.value.public_message == 'Invalid token'


def test_token_is_valid_until_just_before_expiry(db, settings, accounts) -> None:
    issued_at = datetime.now(timezone.utc) - timedelta(hours=23, minutes=59)
    service = _student_service(db, settings, clock=lambda: issued_at)
    token = service.authenticate('student1@example.com', '123456').token

    assert service.verify(f'Bearer {token}').profile['email'] == 'student1@example.com'


def test_token_is_rejected_after_expiry(db, settings, accounts) -> None:
    issued_at = datetime.now(timezone.utc) - timedelta(hours=24, seconds=1)
    service = _student_service(db, settings, clock=lambda: issued_at)
    token = service.authenticate('student1@example.com', '123456').token

    with pytest.raises(InvalidTokenError) as exception_info:
        service.verify(f'Bearer {token}')

    assert exception_info.value.public_message == 'Invalid token'


def test_tampering_with_any_token_character_is_rejected(db, settings, accounts) -> None:
    service = _student_service(db, settings)
    token = service.authenticate('student1@example.com', '123456').token

    segment_ends = {index - 1 for index, char in enumerate(token) if char == '.'} | {len(token) - 1}
    for index, char in enumerate(token):
        # The final character of a base64url segment may carry only padding bits.
        if char == '.' or index in segment_ends:
            continue
        replacement = 'A' if char != 'A' else 'B'
        tampered = token[:index] + replacement + token[index + 1:]

        with pytest.raises(InvalidTokenError):
            service.verify(f'Bearer {tampered}')


def test_token_signed_with_another_secret_is_rejected(db, settings, accounts) -> None:
    token = jwt.encode(
        {
            'sub': str(accounts['student'].student.id),
            'kind': 'student',
            'email': 'student1@example.com',
            'role': 'student',
            'iat': datetime.now(timezone.utc),
            'exp': datetime.now(timezone.utc) + timedelta(hours=1),
        },
        'some-other-secret',
        algorithm='HS256',
    )

    with pytest.raises(InvalidTokenError):
        _student_service(db, settings).verify(f'Bearer {token}')


def test_tokens_are_scoped_to_the_issuing_login(db, settings, accounts) -> None:
    account_token = _account_service(db, settings).authenticate('student1@example.com', '123456').token
    student_token = _student_service(db, settings).authenticate('student1@example.com', '123456').token

    with pytest.raises(InvalidTokenError):
        _student_service(db, settings).verify(f'Bearer {account_token}')
    with pytest.raises(InvalidTokenError):
        _account_service(db, settings).verify(f'Bearer {student_token}')


def test_token_with_non_numeric_subject_is_rejected(db, settings) -> None:
    token = create_access_token({'sub': 'abc', 'kind': 'user', 'email': 'x@example.com', 'role': 'admin'}, settings)

    with pytest.raises(InvalidTokenError):
        _account_service(db, settings).verify(f'Bearer {token}')


def test_verify_reports_missing_subject(db, settings, accounts) -> None:
    service = _account_service(db, settings)
    token = service.authenticate('staff@example.com', '123456').token

    db.delete(db.get(User, accounts['staff'].id))
    db.commit()

    with pytest.raises(NotFoundError) as exception_info:
        service.verify(f'Bearer {token}')

    assert exception_info.value.status_code == 404
    assert exception_info.value.public_message == 'User not found'


@pytest.mark.parametrize(
    ('header', 'expected'),
    [
        ('Bearer abc.def.ghi', 'abc.def.ghi'),
        ('bearer abc.def.ghi', 'abc.def.ghi'),
        ('  Bearer   abc.def.ghi  ', 'abc.def.ghi'),
        ('abc.def.ghi', 'abc.def.ghi'),
    ],
)
def test_extract_bearer_token_strips_scheme(header: str, expected: str) -> None:
    assert extract_bearer_token(header) == expected
