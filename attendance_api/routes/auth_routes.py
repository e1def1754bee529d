from fastapi import APIRouter, Depends
from pydantic import BaseModel

from attendance_api.auth.dependencies import (
    get_account_service,
    get_current_account,
    get_current_student,
    get_student_service,
    to_http_exception,
)
from attendance_api.auth.service import SessionService, VerifiedSession
from attendance_api.core.errors import AuthServiceError

router = APIRouter(tags=['auth'])
student_router = APIRouter(tags=['student-auth'])


class LoginRequest(BaseModel):
    # Optional so that missing fields reach the service and come back as a 400.
    email: str | None = None
    password: str | None = None


def perform_login(service: SessionService, data: LoginRequest) -> dict:
    try:
        result = service.authenticate(data.email, data.password)
    except AuthServiceError as exc:
        raise to_http_exception(exc) from exc

    return {
        'success': True,
        'token': result.token,
        service.kind: result.subject,
    }


@router.post('/login')
def login(data: LoginRequest, service: SessionService = Depends(get_account_service)):
    return perform_login(service, data)


@router.get('/profile')
def profile(session: VerifiedSession = Depends(get_current_account)):
    return {'user': session.profile}


@student_router.post('/login')
def student_login(data: LoginRequest, service: SessionService = Depends(get_student_service)):
    return perform_login(service, data)


@student_router.get('/profile')
def student_profile(session: VerifiedSession = Depends(get_current_student)):
    return {'student': session.profile}
