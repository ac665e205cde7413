from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("kinship")

# Paths that answer without a bearer token
PUBLIC_PATH_SUFFIXES = ("/auth/login", "/auth/signup", "/openapi.json", "/groups", "/groups/categories")

class AuthLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not request.headers.get("Authorization"):
            if "/api/" in path and not path.endswith(PUBLIC_PATH_SUFFIXES):
                logger.warning(f"Protected endpoint {path} accessed without auth header")

        response = await call_next(request)

        if response.status_code in (401, 403):
            logger.warning(f"Auth error: {response.status_code} on {request.method} {path}")

        return response
