"""API endpoint modules."""

from .ekyc import router as ekyc_router
from .security import router as security_router
from .system import router as system_router

__all__ = [
    "ekyc_router",
    "security_router",
    "system_router",
]
