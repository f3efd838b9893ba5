from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .routers import files, status
from .services.file_ops import ExplorerConfig, FileExplorer

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

_SECURITY_HEADERS = {
    'Content-Security-Policy': "default-src 'self'",
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}

_NON_UI_PREFIXES = ('api', 'static', 'docs', 'redoc', 'openapi.json')


@asynccontextmanager
async def lifespan(app: FastAPI):
    home = Path(settings.home_directory)
    if home.exists() and not home.is_dir():
        raise RuntimeError('Configured home directory is not a directory. Check HOME_DIRECTORY in .env')
    home.mkdir(parents=True, exist_ok=True)

    app.state.explorer = FileExplorer(ExplorerConfig.from_settings(settings))
    logger.info('Serving files from %s', app.state.explorer.resolver.root)
    yield
    app.state.explorer = None


app = FastAPI(title=settings.app_name, lifespan=lifespan)


def _parse_cors_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(',') if origin.strip()]


cors_origins = _parse_cors_origins(settings.cors_origins)
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=['GET', 'POST', 'OPTIONS'],
        allow_headers=['Content-Type'],
    )


def _apply_security_headers(response):
    for key, value in _SECURITY_HEADERS.items():
        response.headers[key] = value
    return response


@app.middleware('http')
async def security_middleware(request: Request, call_next):
    response = await call_next(request)
    return _apply_security_headers(response)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    if request.url.path.startswith('/api/'):
        response = JSONResponse({'detail': 'Internal server error. Please try again.'}, status_code=500)
    else:
        response = HTMLResponse('<h1>Unexpected error</h1><p>Please try again.</p>', status_code=500)
    return _apply_security_headers(response)


@app.get('/healthz')
def healthz():
    return {'ok': True}


app.include_router(files.router)
app.include_router(status.router)

if Path(settings.static_dir).is_dir():
    app.mount('/static', StaticFiles(directory=settings.static_dir), name='static')


@app.get('/{full_path:path}', include_in_schema=False)
def spa_fallback(full_path: str):
    if full_path.split('/', 1)[0] in _NON_UI_PREFIXES:
        raise HTTPException(status_code=404, detail='Not Found')

    index = Path(settings.static_dir) / 'index.html'
    if not index.is_file():
        raise HTTPException(status_code=404, detail='Not Found')
    return FileResponse(index, media_type='text/html')
