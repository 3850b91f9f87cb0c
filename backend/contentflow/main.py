"""Content lifecycle API - FastAPI Entry Point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from contentflow.config import settings
from contentflow.database import check_database, engine
from contentflow.dependencies import get_db
from contentflow.middleware.cors import setup_cors
from contentflow.middleware.error_handler import setup_error_handlers
from contentflow.middleware.logging_middleware import LoggingMiddleware
from contentflow.middleware.metrics import MetricsMiddleware, setup_metrics
from contentflow.api.v1 import contents as contents_router
from contentflow.api.v1 import profile as profile_router
from contentflow.api import websocket as ws_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info("startup", env=settings.APP_ENV)
    if settings.SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            traces_sample_rate=0.1 if settings.APP_ENV == "production" else 1.0,
            environment=settings.APP_ENV,
        )
    # Redis fan-out for realtime change events across instances
    from contentflow.api.websocket import manager as ws_manager
    await ws_manager.start_redis_listener()

    yield

    await ws_manager.stop_redis_listener()
    from contentflow.utils.redis_client import close_redis
    await close_redis()
    await engine.dispose()
    logger.info("shutdown")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Contentflow API",
        description="Generated content lifecycle: approval, scheduling and realtime sync",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Middleware (order matters: last added = first executed)
    setup_cors(application)
    setup_error_handlers(application)
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(MetricsMiddleware)

    setup_metrics(application)

    # API Routers
    application.include_router(contents_router.router, prefix="/api/v1/content", tags=["Content"])
    application.include_router(profile_router.router, prefix="/api/v1/profile", tags=["Profile"])
    application.include_router(ws_router.router, tags=["WebSocket"])

    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    @application.get("/health/ready", tags=["health"])
    async def readiness_check(db: AsyncSession = Depends(get_db)):
        database_ok = await check_database(db)
        body = {
            "status": "ok" if database_ok else "unavailable",
            "database": "ok" if database_ok else "error",
            "realtime": "redis" if ws_router.manager.redis_enabled else "local",
        }
        return JSONResponse(body, status_code=200 if database_ok else 503)

    return application


app = create_app()
