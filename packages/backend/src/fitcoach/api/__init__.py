"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. Health and verification are open: verification
runs during sign-up, before the user has a token.
"""

from fastapi import APIRouter, Depends

from fitcoach.api.health import router as health_router
from fitcoach.api.notifications import router as notifications_router
from fitcoach.api.verification import router as verification_router
from fitcoach.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(verification_router, tags=["verification"])

# Protected routes: require a valid JWT
api_router.include_router(notifications_router, tags=["notifications"], dependencies=_auth)
