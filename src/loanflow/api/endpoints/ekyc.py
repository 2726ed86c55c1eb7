"""eKYC error reporting endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from loanflow.api.dependencies import (
    ActionLimited,
    CsrfProtected,
    ErrorReportStoreDep,
    RequestBodyDep,
    client_address,
)
from loanflow.schemas.error_report import ErrorReportAccepted, ErrorReportIn, ErrorReportStats

router = APIRouter(prefix="/ekyc", tags=["ekyc"])


@router.post(
    "/error-report",
    response_model=ErrorReportAccepted,
    status_code=status.HTTP_201_CREATED,
    dependencies=[CsrfProtected, ActionLimited],
)
async def submit_error_report(
    request: Request,
    body: RequestBodyDep,
    store: ErrorReportStoreDep,
) -> ErrorReportAccepted:
    """Store an error report raised by the identity-capture flow.

    The body may be JSON or a url-encoded form and must carry a valid CSRF
    token unless the token is sent in the ``x-csrf-token`` header.

    Raises:
        RequestValidationError: If the report payload is invalid (422).
    """
    try:
        report_in = ErrorReportIn.model_validate(body)
    except ValidationError as err:
        raise RequestValidationError(err.errors(include_url=False)) from err

    report = store.add(
        report_in.message,
        level=report_in.level,
        step=report_in.step,
        url=report_in.url,
        user_agent=report_in.user_agent or request.headers.get("user-agent"),
        client_timestamp=report_in.timestamp,
        client_ip=client_address(request),
        data=report_in.data,
    )
    return ErrorReportAccepted(report_id=report.id)


@router.get("/stats", response_model=ErrorReportStats)
async def get_report_stats(store: ErrorReportStoreDep) -> ErrorReportStats:
    """Return aggregate counts over received error reports."""
    return ErrorReportStats.model_validate(store.stats())
