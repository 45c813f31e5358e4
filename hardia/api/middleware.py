"""HTTP middleware and request helpers shared by all routes."""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from hardia.utils.logging import ACCESS_LOGGER

logger = logging.getLogger(ACCESS_LOGGER)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
}


def client_ip(request: Request) -> str:
    """Client identity used as the rate-limit key."""
    return request.client.host if request.client else "unknown"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, status, latency."""

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        response = await call_next(request)
        latency_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{latency_ms:.1f}ms - {client_ip(request)}"
        )
        return response
