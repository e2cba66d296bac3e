"""
Media Catalog — FastAPI application entry-point.

Run with:
    uvicorn catalog.main:app --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from catalog import __version__
from catalog.config import Settings, settings as default_settings
from catalog.database import Database
from catalog.errors import CatalogError, Internal, InvalidArgument, Transient

# ── Import routers ──
from catalog.routers import auth, entries, uploads
from catalog.services.blob_store import LocalBlobStore

logger = logging.getLogger(__name__)


def _error_response(exc: CatalogError) -> JSONResponse:
    body = {"error": exc.code, "message": exc.message}
    if exc.expose_detail:
        body["detail"] = exc.detail
    headers = {"Retry-After": "1"} if isinstance(exc, Transient) else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ── Lifespan: open the store before serving, drain it on shutdown ──
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings)
        await database.create_all()
        app.state.database = database
        app.state.blob_store = LocalBlobStore(settings.MEDIA_DIR, settings.MEDIA_URL_PREFIX)
        logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
        try:
            yield
        finally:
            await database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Catalog of user-submitted movies and TV shows, moderated before going public.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api-docs",
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error kinds → stable responses ──
    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return _error_response(InvalidArgument(problems))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(Internal())

    # ── Blob URLs are served straight from the media directory ──
    app.mount(
        settings.MEDIA_URL_PREFIX,
        StaticFiles(directory=settings.MEDIA_DIR, check_dir=False),
        name="media",
    )

    # ── Register API routers ──
    app.include_router(auth.router)
    app.include_router(entries.router)
    app.include_router(uploads.router)
    if not settings.is_production:
        app.include_router(auth.dev_router)

    # ── Health checks ──
    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.get("/readyz")
    async def readyz(request: Request):
        database: Database = request.app.state.database
        try:
            await asyncio.wait_for(database.ping(), timeout=settings.STORE_TIMEOUT_SECONDS)
        except Exception as e:
            logger.warning(f"Readiness check failed: {e}")
            raise Transient("database ping failed")
        return {"status": "ready", "db": "ok"}

    return app


app = create_app()
