from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings
from .logging_setup import configure_logging
from .routers import directories, files
from .services.file_ops import FileOps
from .services.paths import PathResolver

logger = logging.getLogger(__name__)

_GENERIC_ERROR = {'detail': 'Internal Server Error'}


def _parse_cors_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def _prepare_base_root(config: Settings) -> Path:
    base = Path(config.base_path).resolve()
    if config.create_base_path:
        base.mkdir(parents=True, exist_ok=True)
    if not base.is_dir():
        raise RuntimeError(f'Base path {base} does not exist or is not a directory')
    return base


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: Settings = app.state.settings
    base = _prepare_base_root(config)
    logger.info('Serving %s (strict containment: %s)', base, config.strict_containment)
    yield
    logger.info('Shutting down')


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(_GENERIC_ERROR, status_code=500)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or settings
    configure_logging(config)

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.state.settings = config
    app.state.file_ops = FileOps(
        PathResolver(config.base_path, strict=config.strict_containment),
        chunk_bytes=config.upload_chunk_bytes,
    )

    cors_origins = _parse_cors_origins(config.cors_origins)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
            allow_headers=['Origin', 'X-Requested-With', 'Content-Type', 'Accept'],
        )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get('/healthz')
    def healthz():
        return {'ok': True}

    app.include_router(directories.router)
    app.include_router(files.router)
    return app


app = create_app()


def run() -> None:
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)


if __name__ == '__main__':
    run()
