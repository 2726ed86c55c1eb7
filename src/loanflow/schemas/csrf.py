"""Schemas for CSRF token issuance."""
from __future__ import annotations

from pydantic import BaseModel, Field


class CsrfTokenOut(BaseModel):
    """API response payload carrying a freshly issued token."""

    token: str = Field(..., description="Token in nonce:expiry:signature form.")
