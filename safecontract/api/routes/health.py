"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from safecontract import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness probe. The scanner has no external dependencies to check."""
    return {"status": "healthy", "service": "safecontract-engine", "version": __version__}
