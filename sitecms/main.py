"""
sitecms - marketing site server with an app integration registry.

Serves the static site with enabled third-party apps injected into every page,
plus the admin and public APIs that manage them.

Copyright (c) 2026 sitecms contributors. MIT License. See LICENSE in the repo root.
"""
import logging
import os
import sys
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .api import apps, pages, public_config, track
from .apps.catalog import AppCatalog, build_default_catalog
from .apps.service import AppsService
from .apps.store import AppsConfigStore
from .config import Settings, settings as default_settings
from .exceptions import SiteCmsError
from .middleware import RateLimitMiddleware
from .services.kv_store import JsonFileStore, KeyValueStore

logging.basicConfig(
    level=logging.DEBUG if default_settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

VERSION = os.getenv("VERSION", "1.0.0")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: report what will be injected on startup."""
    s: Settings = app.state.settings
    logger.info("Starting %s...", s.app_name)
    logger.info(
        "Catalog: %d apps in %d categories",
        len(app.state.catalog),
        len(app.state.catalog.categories()),
    )
    if s.jwt_secret_key == "devsecret":
        logger.warning(
            "⚠️  Using the default JWT secret - set SITECMS_JWT_SECRET_KEY for production!"
        )
    yield
    logger.info("Shutting down...")


async def sitecms_error_handler(request: Request, exc: SiteCmsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.error_code, **exc.context},
    )


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "ERROR"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "code": code},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    catalog: Optional[AppCatalog] = None,
) -> FastAPI:
    """Build the FastAPI app. Tests pass their own settings, store and catalog."""
    settings = settings or default_settings
    catalog = catalog or build_default_catalog()
    store = store if store is not None else JsonFileStore(settings.data_dir)

    app = FastAPI(
        title=settings.app_name,
        version=VERSION,
        description="Marketing site with third-party app integrations",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.apps_service = AppsService(catalog, AppsConfigStore(store))

    # Rate limiting middleware (applied first to catch abuse early)
    app.add_middleware(RateLimitMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if "*" in settings.cors_origins:
        logger.warning(
            "⚠️  CORS is set to allow ALL origins (*) with credentials - this is INSECURE for production!"
        )

    app.add_exception_handler(SiteCmsError, sitecms_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)

    @app.get("/api")
    async def root():
        """API root."""
        return {
            "name": settings.app_name,
            "version": VERSION,
            "status": "operational",
        }

    @app.get("/api/health")
    async def health():
        """Health check."""
        return {"status": "healthy"}

    app.include_router(apps.router)
    app.include_router(public_config.router)
    app.include_router(track.router)
    # Last: /{page} matches any single path segment
    app.include_router(pages.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sitecms.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )
