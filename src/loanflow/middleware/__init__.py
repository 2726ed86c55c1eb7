"""ASGI middleware installed by the application factory."""

from .access_log import AccessLogMiddleware
from .rate_limit import ApiRateLimitMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "AccessLogMiddleware",
    "ApiRateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
