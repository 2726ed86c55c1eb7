"""In-memory store for client-side eKYC error reports."""

from __future__ import annotations

import logging
import uuid
from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any

from loanflow.core.time import utcnow

logger = logging.getLogger("loanflow.ekyc")

DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class ErrorReport:
    """A single report submitted by the loan application frontend."""

    id: str
    received_at: datetime
    level: str
    message: str
    step: str | None = None
    url: str | None = None
    user_agent: str | None = None
    client_timestamp: str | None = None
    client_ip: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["received_at"] = self.received_at.isoformat()
        return payload


class ErrorReportStore:
    """Bounded, thread-safe report buffer; the oldest report is evicted first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._reports: deque[ErrorReport] = deque(maxlen=capacity)
        self._by_level: Counter[str] = Counter()
        self._by_step: Counter[str] = Counter()
        self._total = 0
        self._lock = Lock()

    def add(
        self,
        message: str,
        *,
        level: str = "ERROR",
        step: str | None = None,
        url: str | None = None,
        user_agent: str | None = None,
        client_timestamp: str | None = None,
        client_ip: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ErrorReport:
        """Record a report and return it with its assigned id."""
        report = ErrorReport(
            id=str(uuid.uuid4()),
            received_at=utcnow(),
            level=level,
            message=message,
            step=step,
            url=url,
            user_agent=user_agent,
            client_timestamp=client_timestamp,
            client_ip=client_ip,
            data=dict(data or {}),
        )
        with self._lock:
            self._reports.append(report)
            self._total += 1
            self._by_level[level] += 1
            if step:
                self._by_step[step] += 1

        logger.warning(
            "eKYC error report %s level=%s step=%s: %s",
            report.id,
            level,
            step or "-",
            message,
        )
        return report

    def recent(self, limit: int = 20) -> list[ErrorReport]:
        """Return up to `limit` reports, newest first."""
        with self._lock:
            items = list(self._reports)
        return list(reversed(items))[: max(0, limit)]

    def stats(self) -> dict[str, Any]:
        """Return aggregate counts over every report received so far."""
        with self._lock:
            last = self._reports[-1].received_at.isoformat() if self._reports else None
            return {
                "total": self._total,
                "retained": len(self._reports),
                "byLevel": dict(self._by_level),
                "byStep": dict(self._by_step),
                "lastReportAt": last,
            }
