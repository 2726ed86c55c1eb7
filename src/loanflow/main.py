# src/loanflow/main.py
"""Main entry point for the loan application gateway."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from loanflow.api import api_router
from loanflow.api.endpoints import system_router
from loanflow.core.logging import configure_logging
from loanflow.core.security import SecurityConfig
from loanflow.core.settings import Settings, settings as default_settings
from loanflow.middleware import (
    AccessLogMiddleware,
    ApiRateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from loanflow.services.csrf import CsrfTokenService
from loanflow.services.error_reports import ErrorReportStore
from loanflow.services.rate_limit import AttemptLimiter

logger = logging.getLogger(__name__)


async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": detail}`` without internal details."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    config: Settings | None = None,
    security: SecurityConfig | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Settings to use; the process-wide settings by default.
        security: Prebuilt security configuration; derived from `config` when omitted.

    Returns:
        A configured FastAPI application with its services on ``app.state``.

    Raises:
        ConfigurationError: If production runs without a CSRF secret.
    """
    config = config or default_settings
    configure_logging(config.log_level)
    security = security or SecurityConfig.from_settings(config)

    app = FastAPI(
        title=config.app_name,
        description="CSRF token issuance, rate limiting and eKYC error reporting",
        version=config.app_version,
    )

    app.state.settings = config
    app.state.security = security
    app.state.csrf_service = CsrfTokenService(security)
    app.state.api_limiter = AttemptLimiter(security.api_limit, name="api")
    app.state.action_limiter = AttemptLimiter(security.action_limit, name="action")
    app.state.error_reports = ErrorReportStore(config.error_report_capacity)

    # Added innermost first; the access log wraps everything.
    app.add_middleware(
        ApiRateLimitMiddleware,
        limiter=app.state.api_limiter,
        prefix=config.api_rate_limit_prefix,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AccessLogMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(system_router)
    app.include_router(api_router)

    logger.info(
        "%s %s started (env=%s, ephemeral_secret=%s)",
        config.app_name,
        config.app_version,
        config.app_env,
        security.secret_is_ephemeral,
    )
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "loanflow.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )
