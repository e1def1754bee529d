from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_api.accounts import AccountConflictError, create_account
from attendance_api.auth.dependencies import get_app_settings, require_admin
from attendance_api.auth.passwords import BCRYPT_MAX_PASSWORD_BYTES
from attendance_api.auth.service import VerifiedSession
from attendance_api.core.config import Settings
from attendance_api.database import get_db
from attendance_api.models.user import AccountStatus, Role, User

router = APIRouter(tags=['users'])

PROFILE_FIELDS = {
    'admin': ('admin_level',),
    'staff': ('employee_id', 'department', 'position'),
    'student': ('student_id', 'class_name', 'section', 'year'),
}
REQUIRED_PROFILE_FIELDS = {
    'admin': (),
    'staff': ('employee_id',),
    'student': ('student_id',),
}


class ProfileFields(BaseModel):
    admin_level: str | None = None
    employee_id: str | None = None
    department: str | None = None
    position: str | None = None
    student_id: str | None = None
    class_name: str | None = None
    section: str | None = None
    year: str | None = None


class CreateUserRequest(BaseModel):
    email: str
    password: str
    name: str
    role: str
    status: str = AccountStatus.ACTIVE.value
    profile: ProfileFields = Field(default_factory=ProfileFields)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        if len(value.encode('utf-8')) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be {BCRYPT_MAX_PASSWORD_BYTES} bytes or fewer.')
        return value

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {role.value for role in Role}:
            raise ValueError('Role must be one of admin, staff, student.')
        return normalized

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {account_status.value for account_status in AccountStatus}:
            raise ValueError('Status must be active or inactive.')
        return normalized


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    status: str

    class Config:
        from_attributes = True


def profile_values(data: CreateUserRequest) -> dict:
    values = data.profile.model_dump()
    selected = {
        field_name: values[field_name]
        for field_name in PROFILE_FIELDS[data.role]
        if values[field_name] is not None
    }

    missing = [field_name for field_name in REQUIRED_PROFILE_FIELDS[data.role] if not selected.get(field_name)]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing profile fields for {data.role}: {', '.join(missing)}",
        )

    return selected


@router.get('', response_model=list[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    _admin: VerifiedSession = Depends(require_admin),
):
    try:
        return db.query(User).order_by(User.id.asc()).all()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL.',
        ) from exc


@router.post('', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: CreateUserRequest,
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
    _admin: VerifiedSession = Depends(require_admin),
):
    profile = profile_values(data)

    try:
        return create_account(
            db,
            email=data.email,
            password=data.password,
            name=data.name,
            role=data.role,
            profile=profile,
            status=data.status,
            rounds=settings.bcrypt_rounds,
        )
    except AccountConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL.',
        ) from exc
