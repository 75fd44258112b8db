"""
Storefront Marketplace - Backend API

Run with:
    uvicorn storefront.main:create_app --factory
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api import auth, categories, orders, products, stores, users
from storefront.core.auth import PasswordHasher
from storefront.core.config import Settings, get_settings
from storefront.core.database import Database
from storefront.core.errors import register_error_handlers
from storefront.core.media import MediaHost

logger = logging.getLogger("storefront")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and latency of every request"""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Settings = None, db: Database = None, media: MediaHost = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: configuration, loaded from the environment when omitted
        db: database pool; created at startup when omitted
        media: media host connector; created at startup when omitted
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_db = app.state.db is None
        owns_media = app.state.media is None
        if owns_db:
            app.state.db = Database(settings)
        if owns_media:
            app.state.media = MediaHost(settings)
        logger.info(f"{settings.API_TITLE} {settings.API_VERSION} started")
        try:
            yield
        finally:
            if owns_media:
                await app.state.media.close()
            if owns_db:
                app.state.db.close()
            logger.info(f"{settings.API_TITLE} stopped")

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.media = media
    app.state.hasher = PasswordHasher(settings.BCRYPT_ROUNDS)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    prefix = settings.API_PREFIX
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
    app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
    app.include_router(stores.router, prefix=f"{prefix}/stores", tags=["Stores"])
    app.include_router(categories.router, prefix=f"{prefix}/categories", tags=["Categories"])
    app.include_router(products.router, prefix=f"{prefix}/products", tags=["Products"])
    app.include_router(orders.router, prefix=f"{prefix}/orders", tags=["Orders"])

    @app.get("/health")
    def health(request: Request):
        """Health check - tests database connectivity"""
        start_time = time.time()
        db_status = "connected"
        db_error = None
        try:
            request.app.state.db.ping()
        except Exception as e:
            logger.warning(f"Health check could not reach the database: {e}")
            db_status = "disconnected"
            db_error = str(e)

        return {
            "status": "healthy" if db_status == "connected" else "degraded",
            "service": "storefront-api",
            "version": settings.API_VERSION,
            "database": {"status": db_status, "error": db_error},
            "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        }

    return app
