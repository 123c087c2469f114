"""SocialHub Backend - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from socialhub.api import api_router, register_exception_handlers
from socialhub.core import async_session_maker, create_schema, settings, setup_logging
from socialhub.core.logging import get_logger
from socialhub.services.connections import ConnectionRegistry
from socialhub.services.revocation import SqlRevocationStore

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Surface a crashed background loop instead of losing it silently."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background loop {task.get_name()} stopped: {exc!r}")


async def purge_revoked_tokens() -> int:
    """Remove revocation records whose token family can no longer be used."""
    async with async_session_maker() as db:
        return await SqlRevocationStore(db).purge_expired()


async def _revocation_sweep_loop() -> None:
    """Periodically remove expired revocation records."""
    while True:
        await asyncio.sleep(settings.revocation_sweep_interval_seconds)
        try:
            removed = await purge_revoked_tokens()
            if removed > 0:
                logger.info(f"Cleaned up {removed} expired revocation records")
        except Exception:
            logger.exception("Error cleaning up revocation records")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and schema, run the revocation sweep until shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    if settings.auto_create_schema:
        await create_schema()

    sweep_task = asyncio.create_task(_revocation_sweep_loop(), name="revocation-sweep")
    sweep_task.add_done_callback(task_done_callback)

    yield

    logger.info(f"Stopping {settings.app_name}, dropping {len(app.state.connections.online_users())} live users")
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass
    app.state.connections.clear()


def create_app() -> FastAPI:
    """Build the SocialHub API with guards, error envelope and gateway wired in."""
    app = FastAPI(
        title=settings.app_name,
        description="Social network backend",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    # CORS middleware - outermost so error responses carry CORS headers too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    app.state.connections = ConnectionRegistry()

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "service": settings.app_name,
            "release": settings.app_version,
            "gateway": "/ws",
        }

    return app


# Application instance
app = create_app()
