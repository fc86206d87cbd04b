"""
SMS60 HTTP API - app factory

Routers are mounted under /api. A lost serial link surfaces as 503, any
other unhandled error as 500.
"""

import os
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core import config
from core.logger import log_critical, log_warn
from .routes import connection_router, motion_router


def cors_origins() -> List[str]:
    """Allowed browser origins, SMS60_CORS_ORIGINS overrides the defaults"""
    raw = os.environ.get(config.API_CORS_ORIGINS_ENV, "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or list(config.API_CORS_ORIGINS)


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="SMS60 Stage API",
        description="REST API for the OWIS SMS60 two-axis stage controller",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConnectionError)
    async def serial_link_lost(request: Request, exc: ConnectionError):
        log_warn(f"Serial link lost during {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": f"Stage not reachable: {exc}"})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log_critical(f"Unhandled error in {request.url.path}: {exc!r}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(connection_router, prefix="/api")
    app.include_router(motion_router, prefix="/api")
    return app
