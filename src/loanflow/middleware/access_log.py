"""One log line per request in combined log format."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("loanflow.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, size, referrer and user agent for each request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        logger.info(
            '%s - - [%s] "%s %s HTTP/%s" %d %s "%s" "%s" %.1fms',
            request.client.host if request.client else "-",
            time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            request.method,
            path,
            request.scope.get("http_version", "1.1"),
            response.status_code,
            response.headers.get("content-length", "-"),
            request.headers.get("referer", "-"),
            request.headers.get("user-agent", "-"),
            elapsed_ms,
        )
        return response
