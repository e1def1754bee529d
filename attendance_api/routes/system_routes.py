import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_api.database import get_db
from attendance_api.models.profiles import Admin

router = APIRouter(tags=['system'])

logger = logging.getLogger(__name__)


@router.get('')
def api_root():
    return {'status': 'Attendance API Running'}


@router.get('/health')
def health():
    return {'status': 'healthy'}


@router.get('/test-db')
def test_db(db: Session = Depends(get_db)):
    try:
        admins = db.query(Admin).order_by(Admin.id.asc()).all()
    except SQLAlchemyError:
        logger.exception('Database probe failed')
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={'error': 'DB error'})

    return [
        {'id': admin.id, 'userId': admin.user_id, 'adminLevel': admin.admin_level}
        for admin in admins
    ]
