"""Scan orchestrator — coordinates the verification pipeline."""

from __future__ import annotations

import logging
import time

from safecontract.analyzer.conditions import generate
from safecontract.analyzer.extractor import extract
from safecontract.analyzer.rules import evaluate
from safecontract.core.config import Settings, get_settings
from safecontract.core.errors import SourceTooLargeError
from safecontract.core.types import ScanReport
from safecontract.verifier.aggregator import aggregate
from safecontract.verifier.certificate import (
    ClockProvider,
    RandomBytesProvider,
    contract_hash,
    system_random_bytes,
    utc_now,
)

logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """Coordinates the scan pipeline.

    Flow:
    1. EXTRACT — Build the structural contract model from source text
    2. GENERATE — Derive per-function verification conditions
    3. EVALUATE — Decide every condition independently
    4. AGGREGATE — Count verdicts, score, and issue a certificate

    The orchestrator holds no per-scan state; one instance can serve
    concurrent scans.
    """

    def __init__(
        self,
        *,
        random_bytes: RandomBytesProvider = system_random_bytes,
        clock: ClockProvider = utc_now,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._random_bytes = random_bytes
        self._clock = clock

    @property
    def settings(self) -> Settings:
        return self._settings

    def check_size(self, source: str) -> None:
        """Raise ``SourceTooLargeError`` if ``source`` exceeds the limit."""
        size = len(source.encode("utf-8"))
        limit = self._settings.max_source_bytes
        if size > limit:
            raise SourceTooLargeError(size, limit)

    def scan(self, source: str) -> ScanReport:
        """Run the full pipeline over one source string."""
        self.check_size(source)

        start = time.perf_counter()
        digest = contract_hash(source)
        logger.info("Scanning contract %s (%d chars)", digest, len(source))

        contract = extract(source)
        conditions = generate(contract) if contract.functions else []
        verdicts = [evaluate(condition, contract) for condition in conditions]
        outcome = aggregate(
            source,
            contract,
            verdicts,
            random_bytes=self._random_bytes,
            clock=self._clock,
            verification_method=self._settings.verification_method,
        )

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        summary = outcome.summary
        logger.info(
            "Scan %s complete: %d checks, %d vulnerable → %s (%dms)",
            digest,
            summary.total_checks,
            summary.vulnerable_count,
            summary.overall_status.value,
            elapsed_ms,
            extra={
                "contract_hash": digest,
                "total_checks": summary.total_checks,
                "vulnerable_count": summary.vulnerable_count,
                "overall_status": summary.overall_status.value,
                "duration_ms": elapsed_ms,
            },
        )

        return ScanReport(
            contract_hash=digest,
            timestamp=self._clock(),
            verification_time_ms=elapsed_ms,
            solidity_version=contract.solidity_version,
            functions_analyzed=len(contract.functions),
            summary=summary,
            verdicts=outcome.verdicts,
            certificate=outcome.certificate,
            message=outcome.message,
        )
