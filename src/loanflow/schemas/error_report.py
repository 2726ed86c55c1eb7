"""Schemas for eKYC error reporting."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ReportLevel = Literal["DEBUG", "INFO", "WARN", "ERROR"]


class ErrorReportIn(BaseModel):
    """Error report as posted by the loan application frontend.

    Token fields (``_token`` / ``csrfToken``) travel in the same body and are
    ignored here.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str = Field(..., min_length=1, max_length=2000)
    level: ReportLevel = "ERROR"
    step: str | None = Field(default=None, max_length=100)
    url: str | None = Field(default=None, max_length=2048)
    user_agent: str | None = Field(default=None, alias="userAgent", max_length=512)
    timestamp: str | None = Field(default=None, max_length=64)
    data: dict[str, Any] | None = None


class ErrorReportAccepted(BaseModel):
    """Acknowledgement returned once a report is stored."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    report_id: str = Field(..., alias="reportId")


class ErrorReportStats(BaseModel):
    """Aggregate view over received reports."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    retained: int
    by_level: dict[str, int] = Field(default_factory=dict, alias="byLevel")
    by_step: dict[str, int] = Field(default_factory=dict, alias="byStep")
    last_report_at: str | None = Field(default=None, alias="lastReportAt")
