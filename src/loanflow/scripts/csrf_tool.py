"""Operator helper for CSRF secrets and tokens.

``generate-secret`` prints a value suitable for ``CSRF_SECRET``.
``issue`` and ``verify`` mint or check a token with the configured secret,
which is useful when debugging a deployment from a shell.
"""
from __future__ import annotations

import argparse
import secrets
import sys

from loanflow.core.errors import ConfigurationError
from loanflow.core.security import EPHEMERAL_SECRET_BYTES, SecurityConfig
from loanflow.core.settings import Settings
from loanflow.services.csrf import CsrfTokenService


def _token_service(config: Settings) -> CsrfTokenService:
    if not config.csrf_secret:
        raise ConfigurationError("CSRF_SECRET must be set to issue or verify tokens")
    return CsrfTokenService(SecurityConfig.from_settings(config))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage CSRF secrets and tokens")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("generate-secret", help="Print a new random CSRF_SECRET value")
    sub.add_parser("issue", help="Issue a token signed with CSRF_SECRET")
    verify = sub.add_parser("verify", help="Check a token against CSRF_SECRET")
    verify.add_argument("token", help="Token in nonce:expiry:signature form")
    args = parser.parse_args(argv)

    if args.command == "generate-secret":
        print(secrets.token_hex(EPHEMERAL_SECRET_BYTES))
        return 0

    try:
        service = _token_service(Settings())
    except ConfigurationError as err:
        print(f"error: {err}", file=sys.stderr)
        return 2

    if args.command == "issue":
        print(service.issue())
        return 0

    if service.verify(args.token):
        print("valid")
        return 0
    print("invalid")
    return 1


if __name__ == "__main__":
    sys.exit(main())
