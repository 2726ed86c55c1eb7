"""Stateless anti-CSRF tokens.

A token has the wire form ``nonce:expiry:signature`` where ``expiry`` is a
UNIX timestamp in milliseconds and ``signature`` is the hex HMAC-SHA256 of
``nonce:expiry`` under the process secret. Nothing is stored server-side, so
a captured token stays usable until it expires.
"""

from __future__ import annotations

import logging
import math
import secrets
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from loanflow.core.security import MILLISECONDS_PER_SECOND, SecurityConfig, sign, signatures_match

logger = logging.getLogger(__name__)

NONCE_BYTES: Final[int] = 16
TOKEN_SEPARATOR: Final[str] = ":"
TOKEN_FIELD_COUNT: Final[int] = 3

CSRF_HEADER: Final[str] = "x-csrf-token"
LEGACY_BODY_FIELD: Final[str] = "_token"
ALTERNATE_BODY_FIELD: Final[str] = "csrfToken"

Clock = Callable[[], float]
TokenExtractor = Callable[[Mapping[str, Any], Mapping[str, Any]], Any]


@dataclass(frozen=True)
class CsrfToken:
    """Structured view of a token's three fields."""

    nonce: str
    expiry: str
    signature: str

    @property
    def payload(self) -> str:
        """Return the signed portion of the token."""
        return f"{self.nonce}{TOKEN_SEPARATOR}{self.expiry}"

    def encode(self) -> str:
        return f"{self.payload}{TOKEN_SEPARATOR}{self.signature}"


def parse_token(candidate: Any) -> CsrfToken | None:
    """Split a candidate into its fields, or return None if it is malformed."""
    if not isinstance(candidate, str) or not candidate:
        return None
    parts = candidate.split(TOKEN_SEPARATOR)
    if len(parts) != TOKEN_FIELD_COUNT or not all(parts):
        return None
    nonce, expiry, signature = parts
    return CsrfToken(nonce=nonce, expiry=expiry, signature=signature)


def _parse_expiry(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def header_token(headers: Mapping[str, Any], _body: Mapping[str, Any]) -> Any:
    return headers.get(CSRF_HEADER)


def legacy_body_token(_headers: Mapping[str, Any], body: Mapping[str, Any]) -> Any:
    return body.get(LEGACY_BODY_FIELD)


def alternate_body_token(_headers: Mapping[str, Any], body: Mapping[str, Any]) -> Any:
    return body.get(ALTERNATE_BODY_FIELD)


# Highest priority first.
TOKEN_EXTRACTORS: Final[tuple[TokenExtractor, ...]] = (
    header_token,
    legacy_body_token,
    alternate_body_token,
)


def extract_candidate(
    headers: Mapping[str, Any],
    body: Mapping[str, Any] | None = None,
    extractors: tuple[TokenExtractor, ...] = TOKEN_EXTRACTORS,
) -> Any:
    """Return the first non-empty value produced by `extractors`, in order.

    The value is returned as found; a non-string value is left for
    :meth:`CsrfTokenService.verify` to reject.
    """
    source = body if body is not None else {}
    for extractor in extractors:
        value = extractor(headers, source)
        if value:
            return value
    return None


class CsrfTokenService:
    """Issues and verifies signed, time-limited anti-CSRF tokens."""

    def __init__(self, config: SecurityConfig, clock: Clock = time.time) -> None:
        self._secret = config.secret
        self._ttl_ms = config.token_ttl_ms
        self._clock = clock

    def _now_ms(self) -> int:
        return round(self._clock() * MILLISECONDS_PER_SECOND)

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def issue(self) -> str:
        """Mint a fresh token valid for the configured TTL.

        Returns:
            The ``nonce:expiry:signature`` string.
        """
        nonce = secrets.token_hex(NONCE_BYTES)
        expiry = str(self._now_ms() + self._ttl_ms)
        payload = f"{nonce}{TOKEN_SEPARATOR}{expiry}"
        return f"{payload}{TOKEN_SEPARATOR}{sign(self._secret, payload)}"

    def verify(self, candidate: Any) -> bool:
        """Return True only for a well-formed, authentic, unexpired token.

        Never raises; every failure produces the same False result.
        """
        reason = self._rejection_reason(candidate)
        if reason is not None:
            logger.debug("CSRF token rejected: %s", reason)
            return False
        return True

    def _rejection_reason(self, candidate: Any) -> str | None:
        token = parse_token(candidate)
        if token is None:
            return "malformed"
        expected = sign(self._secret, token.payload)
        if not signatures_match(token.signature, expected):
            return "bad signature"
        expiry = _parse_expiry(token.expiry)
        if expiry is None:
            return "bad expiry"
        if self._now_ms() > expiry:
            return "expired"
        return None
