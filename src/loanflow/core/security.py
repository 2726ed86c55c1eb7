"""Signing primitives and the security configuration object."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass

from loanflow.core.errors import ConfigurationError
from loanflow.core.settings import Settings

logger = logging.getLogger(__name__)

EPHEMERAL_SECRET_BYTES = 32
MILLISECONDS_PER_SECOND = 1000
MISSING_SECRET_MESSAGE = "CSRF_SECRET is not set; using ephemeral secret (development only)."


def sign(secret: bytes, payload: str) -> str:
    """Return the hex-encoded HMAC-SHA256 of `payload` under `secret`.

    Args:
        secret: Process-wide signing key.
        payload: Text to authenticate, encoded as UTF-8.

    Returns:
        64 lowercase hex characters.
    """
    return hmac.new(secret, payload.encode("utf-8", "surrogatepass"), hashlib.sha256).hexdigest()


def signatures_match(presented: str, expected: str) -> bool:
    """Compare two hex signatures in constant time.

    A length mismatch only reveals that the presented value is malformed,
    since every valid signature has the same length.
    """
    presented_bytes = presented.encode("utf-8", "surrogatepass")
    expected_bytes = expected.encode("utf-8")
    if len(presented_bytes) != len(expected_bytes):
        return False
    return hmac.compare_digest(presented_bytes, expected_bytes)


def resolve_secret(config: Settings) -> tuple[bytes, bool]:
    """Return the signing secret and whether it was generated for this process.

    Raises:
        ConfigurationError: If no secret is configured in production.
    """
    if config.csrf_secret:
        return config.csrf_secret.encode("utf-8"), False
    if config.is_production:
        raise ConfigurationError(MISSING_SECRET_MESSAGE)
    logger.warning(MISSING_SECRET_MESSAGE)
    return secrets.token_hex(EPHEMERAL_SECRET_BYTES).encode("utf-8"), True


@dataclass(frozen=True)
class LimitPolicy:
    """Ceiling of attempts allowed per window."""

    max_attempts: int
    window_seconds: float


@dataclass(frozen=True)
class SecurityConfig:
    """Security parameters shared by the token service and the limiters."""

    secret: bytes
    token_ttl_ms: int
    api_limit: LimitPolicy
    action_limit: LimitPolicy
    secret_is_ephemeral: bool = False

    def __repr__(self) -> str:
        return (
            f"SecurityConfig(secret=<redacted>, token_ttl_ms={self.token_ttl_ms}, "
            f"api_limit={self.api_limit!r}, action_limit={self.action_limit!r}, "
            f"secret_is_ephemeral={self.secret_is_ephemeral})"
        )

    @classmethod
    def from_settings(cls, config: Settings) -> SecurityConfig:
        """Build the security configuration, failing fast on a missing production secret."""
        secret, ephemeral = resolve_secret(config)
        return cls(
            secret=secret,
            token_ttl_ms=int(config.csrf_token_ttl_seconds) * MILLISECONDS_PER_SECOND,
            api_limit=LimitPolicy(
                max_attempts=config.api_rate_limit_max,
                window_seconds=config.api_rate_limit_window_seconds,
            ),
            action_limit=LimitPolicy(
                max_attempts=config.action_rate_limit_max,
                window_seconds=config.action_rate_limit_window_seconds,
            ),
            secret_is_ephemeral=ephemeral,
        )
