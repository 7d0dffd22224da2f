"""Rate limiting middleware: Redis fixed-window counters.

Learn: One counter per client IP per minute, stored in Redis under
"fitcoach:rl:{ip}:{bucket}:{minute}". Verification endpoints get their
own, much smaller bucket: each send-code call would text a real phone.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

VERIFICATION_PREFIX = "/api/v1/verification/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, verification_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.verification_rpm = verification_rpm

    def _bucket(self, path: str) -> tuple[str, int]:
        if path.startswith(VERIFICATION_PREFIX):
            return "verification", self.verification_rpm
        return "api", self.default_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        # Only the REST API is limited; long-lived streams are not.
        if not path.startswith("/api/") or path.endswith("/stream"):
            return await call_next(request)

        try:
            from fitcoach.realtime.redis_pool import get_redis

            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket, rpm = self._bucket(path)
        window = int(time.time() // 60)
        key = f"fitcoach:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception:
            # Redis error: don't block the request
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
