"""API router wiring.

Composes the ``/api`` surface from the endpoint modules; no endpoint
definitions live here.
"""
from __future__ import annotations

from typing import Final

from fastapi import APIRouter

from .endpoints import ekyc_router, security_router

api_router: Final[APIRouter] = APIRouter(prefix="/api")
api_router.include_router(security_router)
api_router.include_router(ekyc_router)

__all__ = ["api_router"]
