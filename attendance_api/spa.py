"""Serving a prebuilt single-page app next to the API.

The asset directory is the first of these that contains an index.html:
the configured STATIC_DIR, ./web/build under the working directory, then
web/build beside the directory holding this package.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).resolve().parent
INDEX_FILE = 'index.html'
SPA_METHODS = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE']
LANDING_PAGE = '<h1>Attendance API</h1><p>Use <a href="/api">/api</a> for endpoints.</p>'


def static_dir_candidates(configured: str | None) -> list[Path]:
    candidates = []
    if configured:
        candidates.append(Path(configured))
    candidates.append(Path.cwd() / 'web' / 'build')
    candidates.append(PACKAGE_ROOT.parent / 'web' / 'build')
    return candidates


def resolve_static_dir(configured: str | None) -> Path | None:
    for candidate in static_dir_candidates(configured):
        if (candidate / INDEX_FILE).is_file():
            return candidate.resolve()

    if configured:
        logger.warning('STATIC_DIR %s has no %s; serving the landing page instead', configured, INDEX_FILE)
    return None


def is_api_path(full_path: str, api_prefix: str) -> bool:
    prefix = api_prefix.strip('/')
    return full_path == prefix or full_path.startswith(prefix + '/')


def build_spa_router(static_dir: Path | None, api_prefix: str = '/api') -> APIRouter:
    router = APIRouter(include_in_schema=False)

    if static_dir is None:
        @router.get('/', response_class=HTMLResponse)
        def landing_page():
            return LANDING_PAGE

        return router

    index_file = static_dir / INDEX_FILE

    @router.api_route('/{full_path:path}', methods=SPA_METHODS)
    def serve_spa(full_path: str, request: Request):
        if is_api_path(full_path, api_prefix):
            if full_path.endswith('/'):
                return RedirectResponse(url='/' + full_path.rstrip('/'))
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Not Found')

        if request.method not in ('GET', 'HEAD'):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Not Found')

        if full_path:
            candidate = (static_dir / full_path).resolve()
            if candidate.is_file() and candidate.is_relative_to(static_dir):
                return FileResponse(candidate)

        return FileResponse(index_file)

    return router
