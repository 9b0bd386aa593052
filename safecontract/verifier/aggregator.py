"""Verdict aggregation — fan-in of the evaluator's verdicts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from safecontract.core.types import Certificate, Contract, ScanSummary, Verdict
from safecontract.verifier.certificate import (
    ClockProvider,
    RandomBytesProvider,
    issue_certificate,
)

logger = logging.getLogger(__name__)

NO_FUNCTIONS_MESSAGE = "No functions found in contract - contract appears simple"
NO_CONDITIONS_MESSAGE = "No verification conditions generated - contract appears simple"


@dataclass(frozen=True)
class ScanOutcome:
    """Summary, verdicts and optional certificate for one scan."""

    summary: ScanSummary
    verdicts: list[Verdict] = field(default_factory=list)
    certificate: Certificate | None = None
    message: str | None = None


def aggregate(
    source: str,
    contract: Contract,
    verdicts: list[Verdict],
    *,
    random_bytes: RandomBytesProvider,
    clock: ClockProvider,
    verification_method: str,
) -> ScanOutcome:
    """Summarize ``verdicts`` and issue a certificate when none is vulnerable.

    Contracts with no functions, or with functions but no conditions, short
    circuit to an all-zero summary scoring 100 and never get a certificate.
    """
    if not contract.functions:
        return ScanOutcome(summary=ScanSummary(), message=NO_FUNCTIONS_MESSAGE)
    if not verdicts:
        return ScanOutcome(summary=ScanSummary(), message=NO_CONDITIONS_MESSAGE)

    summary = ScanSummary.calculate(verdicts)

    certificate = None
    if summary.vulnerable_count == 0:
        certificate = issue_certificate(
            source,
            verdicts,
            random_bytes=random_bytes,
            clock=clock,
            verification_method=verification_method,
        )
        logger.info("Issued certificate %s", certificate.certificate_id)

    return ScanOutcome(summary=summary, verdicts=list(verdicts), certificate=certificate)
