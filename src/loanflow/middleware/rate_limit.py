"""Per-IP limiter for every route under the API prefix."""
from __future__ import annotations

import math

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from loanflow.services.rate_limit import AttemptLimiter, RateLimitDecision

TOO_MANY_REQUESTS_MESSAGE = "Too many requests, please try again later."


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Return the standard ``RateLimit-*`` headers for a decision."""
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(math.ceil(decision.reset_after_seconds)),
    }


class ApiRateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the coarse request ceiling with HTTP 429.

    Only the standard ``RateLimit-*`` headers are emitted; the legacy
    ``X-RateLimit-*`` family is never sent.
    """

    def __init__(self, app: ASGIApp, limiter: AttemptLimiter, prefix: str = "/api/") -> None:
        super().__init__(app)
        self._limiter = limiter
        self._prefix = prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self._prefix):
            return await call_next(request)

        actor = request.client.host if request.client else "unknown"
        decision = self._limiter.hit(actor)
        headers = rate_limit_headers(decision)
        if not decision.allowed:
            headers["Retry-After"] = headers["RateLimit-Reset"]
            return JSONResponse(
                status_code=429,
                content={"error": TOO_MANY_REQUESTS_MESSAGE},
                headers=headers,
            )

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
