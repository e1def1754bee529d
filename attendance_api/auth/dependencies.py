from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from attendance_api.auth.service import AccountSubjects, SessionService, StudentSubjects, VerifiedSession
from attendance_api.core.config import Settings
from attendance_api.core.errors import AuthServiceError
from attendance_api.database import get_db


def to_http_exception(exc: AuthServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.public_message)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_account_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> SessionService:
    return SessionService(db, settings, AccountSubjects())


def get_student_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> SessionService:
    return SessionService(db, settings, StudentSubjects())


def get_current_account(
    authorization: str | None = Header(default=None),
    service: SessionService = Depends(get_account_service),
) -> VerifiedSession:
    try:
        return service.verify(authorization)
    except AuthServiceError as exc:
        raise to_http_exception(exc) from exc


def get_current_student(
    authorization: str | None = Header(default=None),
    service: SessionService = Depends(get_student_service),
) -> VerifiedSession:
    try:
        return service.verify(authorization)
    except AuthServiceError as exc:
        raise to_http_exception(exc) from exc


def require_admin(session: VerifiedSession = Depends(get_current_account)) -> VerifiedSession:
    if session.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return session
