"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
reports on its dependencies. Redis is optional, so an unreachable Redis
is reported but does not make the service "degraded".
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from fitcoach import __version__
from fitcoach.db.engine import engine

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        from fitcoach.realtime.redis_pool import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {
        "status": status,
        **checks,
        "live_connections": len(request.app.state.connections),
    }
