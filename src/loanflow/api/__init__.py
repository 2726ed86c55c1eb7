"""HTTP API for the loan application gateway."""

from .router import api_router

__all__ = ["api_router"]
