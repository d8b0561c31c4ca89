"""
Request logging middleware.
Logs every call to the patient, analytics and admin endpoints with the
acting user, status and latency. Log lines only; nothing is persisted.
"""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .security import decode_access_token

logger = logging.getLogger(__name__)

# Endpoints touching patient data or the directory
LOGGED_PATH_PREFIXES = (
    "/api/v1/patients",
    "/api/v1/analytics",
    "/api/v1/admin",
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Middleware that logs access to patient and directory endpoints."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)

        path = request.url.path
        if not any(path.startswith(prefix) for prefix in LOGGED_PATH_PREFIXES):
            return response

        user_id = "anonymous"
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            payload = decode_access_token(auth_header[7:])
            if payload:
                user_id = payload.get("sub", "anonymous")

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d (user=%s, %.1f ms)",
            request.method, path, response.status_code, user_id, elapsed_ms,
        )
        return response
