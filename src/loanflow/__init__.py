"""Loan application gateway: CSRF tokens, rate limiting and eKYC error reports."""

__version__ = "1.0.0"
