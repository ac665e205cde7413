from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("kinship")

# Docs traffic is logged at debug level only
QUIET_PATH_PREFIXES = ("/docs", "/redoc", "/api/v1/openapi.json")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its status and duration, and expose the duration as X-Process-Time"""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        path = request.url.path
        target = f"{path}?{request.url.query}" if request.url.query else path
        log = logger.debug if path.startswith(QUIET_PATH_PREFIXES) else logger.info

        log(f"Request: {request.method} {target}")
        response = await call_next(request)

        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        log(f"Response: {response.status_code} for {request.method} {path} in {elapsed:.4f}s")
        return response
