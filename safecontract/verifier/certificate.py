"""Proof certificate issuance.

Randomness and time are passed in as providers so callers (and tests) can
fix the certificate id and timestamp.
"""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Callable
from datetime import datetime, timezone

from safecontract.core.types import Certificate, Verdict, VerdictStatus

RandomBytesProvider = Callable[[int], bytes]
ClockProvider = Callable[[], datetime]

CERTIFICATE_PREFIX = "SC-"
CERTIFICATE_ID_BYTES = 8
CONTRACT_HASH_LENGTH = 16

CERTIFICATE_STATEMENT = (
    "Every verification condition generated for this contract was marked "
    "verified by the heuristic rule set."
)
CERTIFICATE_DISCLAIMER = (
    "This certificate is a demonstration produced by syntactic pattern matching, "
    "not production-grade formal verification. It covers only the properties "
    "listed; manual review is required before production deployment."
)


def system_random_bytes(n: int) -> bytes:
    """Default randomness provider."""
    return secrets.token_bytes(n)


def utc_now() -> datetime:
    """Default clock provider."""
    return datetime.now(timezone.utc)


def contract_hash(source: str) -> str:
    """First 16 hex characters of SHA-256 over the exact source bytes."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()[:CONTRACT_HASH_LENGTH]


def new_certificate_id(random_bytes: RandomBytesProvider) -> str:
    return CERTIFICATE_PREFIX + random_bytes(CERTIFICATE_ID_BYTES).hex().upper()


def issue_certificate(
    source: str,
    verdicts: list[Verdict],
    *,
    random_bytes: RandomBytesProvider,
    clock: ClockProvider,
    verification_method: str,
) -> Certificate:
    """Issue a certificate listing the description of every verified verdict.

    Callers decide eligibility; this function does not check for
    vulnerable verdicts.
    """
    return Certificate(
        certificate_id=new_certificate_id(random_bytes),
        contract_hash=contract_hash(source),
        issued_at=clock(),
        verification_method=verification_method,
        proven_properties=[
            v.description for v in verdicts if v.status == VerdictStatus.VERIFIED
        ],
        statement=CERTIFICATE_STATEMENT,
        disclaimer=CERTIFICATE_DISCLAIMER,
    )
