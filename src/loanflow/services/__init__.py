"""Business logic services for the loan application gateway."""

from .csrf import CsrfTokenService
from .error_reports import ErrorReportStore
from .rate_limit import AttemptLimiter

__all__ = [
    "AttemptLimiter",
    "CsrfTokenService",
    "ErrorReportStore",
]
