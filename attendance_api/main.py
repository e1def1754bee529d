import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from attendance_api.core.config import Settings, get_settings
from attendance_api.database import build_engine, build_session_factory, connect_or_explain
from attendance_api.routes import auth_routes, system_routes, users_routes
from attendance_api.spa import build_spa_router, resolve_static_dir

API_PREFIX = '/api'

logger = logging.getLogger(__name__)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'error': 'Invalid request body', 'details': jsonable_errors(exc)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'error': 'Internal server error'},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # Drop raw input values; a rejected login body would otherwise echo the password back.
    return [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg', '')}
        for error in exc.errors()
    ]


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)
    engine = engine or build_engine(settings.database_url, echo=settings.sql_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        connect_or_explain(engine, settings.database_url)
        yield
        engine.dispose()

    app = FastAPI(title='Attendance API', lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(system_routes.router, prefix=API_PREFIX)
    app.include_router(auth_routes.router, prefix=f'{API_PREFIX}/auth')
    app.include_router(auth_routes.student_router, prefix=f'{API_PREFIX}/student-auth')
    app.include_router(users_routes.router, prefix=f'{API_PREFIX}/users')

    static_dir = resolve_static_dir(settings.static_dir)
    if static_dir is not None:
        logger.info('Serving web build from %s', static_dir)
    app.include_router(build_spa_router(static_dir, api_prefix=API_PREFIX))

    return app


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host='0.0.0.0', port=settings.port)


if __name__ == '__main__':
    main()
