"""CSRF token issuance endpoint."""
from __future__ import annotations

from fastapi import APIRouter

from loanflow.api.dependencies import CsrfServiceDep
from loanflow.schemas.csrf import CsrfTokenOut

router = APIRouter(tags=["security"])


@router.get("/csrf-token", response_model=CsrfTokenOut)
async def get_csrf_token(csrf_service: CsrfServiceDep) -> CsrfTokenOut:
    """Mint a fresh anti-CSRF token.

    Every call returns a new token; nothing is cached or stored server-side.
    """
    return CsrfTokenOut(token=csrf_service.issue())
