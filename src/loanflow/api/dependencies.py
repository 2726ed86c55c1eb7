"""Shared API dependencies for token checks and rate limiting."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from loanflow.services.csrf import CsrfTokenService, extract_candidate
from loanflow.services.error_reports import ErrorReportStore
from loanflow.services.rate_limit import AttemptLimiter

logger = logging.getLogger(__name__)

CSRF_REJECTION_DETAIL = "Invalid or missing CSRF token"
RATE_LIMIT_DETAIL = "Too many requests, please try again later."

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def client_address(request: Request) -> str:
    """Return the remote address used as the rate-limit actor."""
    return request.client.host if request.client else "unknown"


def get_csrf_service(request: Request) -> CsrfTokenService:
    return request.app.state.csrf_service


def get_action_limiter(request: Request) -> AttemptLimiter:
    return request.app.state.action_limiter


def get_error_report_store(request: Request) -> ErrorReportStore:
    return request.app.state.error_reports


async def get_request_body(request: Request) -> dict[str, Any]:
    """Return the request body as a mapping.

    JSON objects and url-encoded or multipart forms are supported; anything
    else, including an unparseable body, is treated as empty.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_CONTENT_TYPES:
        try:
            form = await request.form()
        except (StarletteHTTPException, MultiPartException):
            logger.debug("Unparseable form body on %s", request.url.path)
            return {}
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


CsrfServiceDep = Annotated[CsrfTokenService, Depends(get_csrf_service)]
ActionLimiterDep = Annotated[AttemptLimiter, Depends(get_action_limiter)]
ErrorReportStoreDep = Annotated[ErrorReportStore, Depends(get_error_report_store)]
RequestBodyDep = Annotated[dict[str, Any], Depends(get_request_body)]


def require_csrf_token(
    request: Request,
    body: RequestBodyDep,
    csrf_service: CsrfServiceDep,
) -> None:
    """Reject the request unless it carries a valid token.

    Raises:
        HTTPException: 403 with a generic detail for every kind of failure.
    """
    candidate = extract_candidate(request.headers, body)
    if not csrf_service.verify(candidate):
        logger.info("Rejected %s %s: CSRF check failed", request.method, request.url.path)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=CSRF_REJECTION_DETAIL,
        )


def require_action_slot(request: Request, limiter: ActionLimiterDep) -> None:
    """Apply the sensitive-action limiter to the calling client.

    Raises:
        HTTPException: 429 once the client exhausted its attempts for the window.
    """
    decision = limiter.hit(client_address(request))
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMIT_DETAIL,
            headers={"Retry-After": str(max(1, round(decision.reset_after_seconds)))},
        )


CsrfProtected = Depends(require_csrf_token)
ActionLimited = Depends(require_action_slot)
