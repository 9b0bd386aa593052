"""Smart contract verification endpoints — scan Solidity source text."""

from __future__ import annotations

import asyncio
import logging
import traceback
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, StrictStr

from safecontract.api.errors import ErrorCode, SafeContractAPIError
from safecontract.api.middleware.metrics import record_scan
from safecontract.core.examples import EXAMPLE_CONTRACTS, get_example
from safecontract.pipeline.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Schemas ──────────────────────────────────────────────────────────────────


class VerifyRequest(BaseModel):
    """Request to verify a Solidity source string."""

    code: StrictStr = Field(..., description="Raw UTF-8 Solidity source")


class ExampleResponse(BaseModel):
    """An example contract to try the verifier with."""

    success: bool = True
    type: str
    code: str
    availableTypes: list[str]


# ── Dependencies ─────────────────────────────────────────────────────────────


def get_orchestrator() -> ScanOrchestrator:
    """Orchestrator with the system randomness and clock providers."""
    return ScanOrchestrator()


# ── Routes ───────────────────────────────────────────────────────────────────


@router.post("/verify")
async def verify_contract(
    payload: VerifyRequest,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Generate and evaluate verification conditions for ``code``.

    A source with no functions is a successful, all-safe result carrying an
    explanatory message; it is not an error.
    """
    orchestrator.check_size(payload.code)
    timeout = orchestrator.settings.scan_timeout_seconds

    try:
        report = await asyncio.wait_for(
            asyncio.to_thread(orchestrator.scan, payload.code),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        # The worker thread cannot be interrupted; only the request is released.
        logger.warning("Verification exceeded %.1fs", timeout)
        raise SafeContractAPIError(
            status_code=504,
            code=ErrorCode.TIMEOUT,
            message=f"Verification did not finish within {timeout:g} seconds.",
        ) from exc
    except Exception as exc:
        logger.error("Verification failed: %s\n%s", exc, traceback.format_exc())
        raise SafeContractAPIError(
            status_code=500,
            code=ErrorCode.VERIFICATION_FAILED,
            message="Verification failed due to an internal error.",
        ) from exc

    record_scan(report)
    return report.to_response()


@router.get("/example", response_model=ExampleResponse)
async def example_contract(
    example_type: str = Query("simple", alias="type"),
) -> ExampleResponse:
    """Return an example contract; unknown types fall back to ``simple``."""
    resolved, code = get_example(example_type)
    return ExampleResponse(type=resolved, code=code, availableTypes=list(EXAMPLE_CONTRACTS))
