"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database, Redis, the code
sweeper). Middleware, CORS, and routers all registered here.

The live state (who is connected, which verification codes are
outstanding) belongs to the app instance (app.state), so two apps
built by create_app() never share it.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitcoach import __version__
from fitcoach.api import api_router
from fitcoach.config import settings
from fitcoach.realtime.registry import ConnectionRegistry
from fitcoach.services.verification import CodeSweeper, VerificationCodeStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    logger.info(
        "fitcoach.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from fitcoach.realtime.redis_pool import close_redis, init_redis
    try:
        await init_redis()
        logger.info("fitcoach.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("fitcoach.redis_unavailable", error=str(e))
        # Redis is optional: only rate limiting depends on it

    if settings.auto_create_tables:
        from fitcoach.db.engine import init_models
        await init_models()
        logger.info("fitcoach.tables_ready")

    sweeper = CodeSweeper(
        app.state.codes, interval=settings.verification_sweep_interval_seconds
    )
    sweep_task = asyncio.create_task(sweeper.run_loop())

    yield

    logger.info("fitcoach.shutdown", live_connections=len(app.state.connections))

    sweeper.stop()
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass

    await close_redis()

    from fitcoach.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="FitCoach Notifications",
        description="Real-time notifications and phone verification for FitCoach",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.connections = ConnectionRegistry()
    app.state.codes = VerificationCodeStore(
        ttl_seconds=settings.verification_code_ttl_seconds
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestContext → handler

    from fitcoach.middleware.rate_limit import RateLimitMiddleware
    from fitcoach.middleware.request_context import RequestContextMiddleware
    from fitcoach.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        verification_rpm=settings.rate_limit_verification_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.include_router(api_router)

    from fitcoach.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: fitcoach.main:app)
app = create_app()
