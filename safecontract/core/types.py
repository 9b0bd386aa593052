"""Shared enums and types used across the engine."""

from __future__ import annotations

import enum
import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ────────────────────────────────────────────────────────────────────


class VulnerabilityClass(str, enum.Enum):
    """Vulnerability class a verification condition is raised for.

    Member order is the order conditions are emitted within one function.
    """

    OVERFLOW = "overflow"
    UNDERFLOW = "underflow"
    INVARIANT_BALANCE = "invariant"
    DIVISION_BY_ZERO = "division"
    PRECONDITION = "precondition"
    REENTRANCY = "reentrancy"


class VerdictStatus(str, enum.Enum):
    """Outcome of evaluating a single verification condition."""

    VERIFIED = "verified"
    VULNERABLE = "vulnerable"
    ERROR = "error"


class OverallStatus(str, enum.Enum):
    """Aggregate status of a scan."""

    VERIFIED_SAFE = "VERIFIED SAFE"
    ISSUES_FOUND = "ISSUES FOUND"


_RESULT_LABELS = {
    VerdictStatus.VERIFIED: "SAFE",
    VerdictStatus.VULNERABLE: "VULNERABLE",
    VerdictStatus.ERROR: "ERROR",
}


# ── Source model ─────────────────────────────────────────────────────────────


class Parameter(BaseModel):
    """A function parameter as written in the header (type, name)."""

    model_config = ConfigDict(frozen=True)

    type: str
    name: str


class FunctionDef(BaseModel):
    """A function declaration with its raw body text."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: list[Parameter] = Field(default_factory=list)
    return_type: str | None = None
    body: str = ""


class Contract(BaseModel):
    """Structural model of one source file, built once per scan."""

    model_config = ConfigDict(frozen=True)

    functions: list[FunctionDef] = Field(default_factory=list)
    state_variables: list[str] = Field(default_factory=list)
    compiler_version_major: int = 0
    compiler_version_minor: int = 0
    solidity_version: str = "unknown"
    has_builtin_overflow_protection: bool = False
    has_unchecked_block: bool = False

    def get_function(self, name: str, index: int | None = None) -> FunctionDef | None:
        """Return the declaration at ``index``, or the first one named ``name``.

        ``index`` disambiguates overloads; it is ignored if it does not point
        at a function called ``name``.
        """
        if index is not None and 0 <= index < len(self.functions):
            func = self.functions[index]
            if func.name == name:
                return func
        for func in self.functions:
            if func.name == name:
                return func
        return None

    def is_overloaded(self, name: str) -> bool:
        return sum(1 for f in self.functions if f.name == name) > 1


# ── Conditions and verdicts ──────────────────────────────────────────────────


class VerificationCondition(BaseModel):
    """Hypothesis that one function is safe w.r.t. one vulnerability class."""

    model_config = ConfigDict(frozen=True)

    id: str
    vulnerability_class: VulnerabilityClass
    target_function: str
    description: str
    note: str | None = None
    # Position of the target in ``Contract.functions``
    function_index: int | None = None


class Verdict(BaseModel):
    """Evaluator decision for a single verification condition."""

    model_config = ConfigDict(frozen=True)

    id: str
    # Plain ``str`` is accepted so a condition of an unknown class can still
    # be reported as an error verdict.
    vulnerability_class: VulnerabilityClass | str
    target_function: str
    description: str
    note: str | None = None
    status: VerdictStatus
    result_label: str
    evidence: str = ""
    proof_generated: bool = False

    @classmethod
    def from_condition(
        cls,
        condition: VerificationCondition,
        status: VerdictStatus,
        evidence: str,
    ) -> "Verdict":
        """Build a verdict carrying the condition's fields."""
        return cls(
            id=condition.id,
            vulnerability_class=condition.vulnerability_class,
            target_function=condition.target_function,
            description=condition.description,
            note=condition.note,
            status=status,
            result_label=_RESULT_LABELS[status],
            evidence=evidence,
            proof_generated=status == VerdictStatus.VERIFIED,
        )


# ── Aggregates ───────────────────────────────────────────────────────────────


class ScanSummary(BaseModel):
    """Counts, score and overall status for one scan."""

    model_config = ConfigDict(frozen=True)

    total_checks: int = 0
    verified_count: int = 0
    vulnerable_count: int = 0
    error_count: int = 0
    security_score: int = 100
    overall_status: OverallStatus = OverallStatus.VERIFIED_SAFE

    @staticmethod
    def calculate(verdicts: list[Verdict]) -> "ScanSummary":
        """Calculate the summary from a verdict list.

        The score is the percentage of verified verdicts, rounded half up.
        An empty list scores 100.
        """
        total = len(verdicts)
        verified = sum(1 for v in verdicts if v.status == VerdictStatus.VERIFIED)
        vulnerable = sum(1 for v in verdicts if v.status == VerdictStatus.VULNERABLE)
        errors = sum(1 for v in verdicts if v.status == VerdictStatus.ERROR)

        if total == 0:
            score = 100
        else:
            score = math.floor(verified / total * 100 + 0.5)

        return ScanSummary(
            total_checks=total,
            verified_count=verified,
            vulnerable_count=vulnerable,
            error_count=errors,
            security_score=score,
            overall_status=(
                OverallStatus.ISSUES_FOUND if vulnerable > 0 else OverallStatus.VERIFIED_SAFE
            ),
        )


class Certificate(BaseModel):
    """Proof certificate issued when no condition was found vulnerable."""

    model_config = ConfigDict(frozen=True)

    certificate_id: str
    contract_hash: str
    issued_at: datetime
    verification_method: str
    proven_properties: list[str] = Field(default_factory=list)
    statement: str
    disclaimer: str


class ScanReport(BaseModel):
    """Result of a completed scan, ready to be rendered for the API or CLI."""

    contract_hash: str
    timestamp: datetime
    verification_time_ms: int = 0
    solidity_version: str = "unknown"
    functions_analyzed: int = 0
    summary: ScanSummary = Field(default_factory=ScanSummary)
    verdicts: list[Verdict] = Field(default_factory=list)
    certificate: Certificate | None = None
    message: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Render the camelCase wire shape returned by the verify endpoint."""
        cert = self.certificate
        return {
            "success": True,
            "contractHash": self.contract_hash,
            "timestamp": self.timestamp.isoformat(),
            "verificationTime_ms": self.verification_time_ms,
            "solidityVersion": self.solidity_version,
            "functionsAnalyzed": self.functions_analyzed,
            "summary": {
                "totalChecks": self.summary.total_checks,
                "verified": self.summary.verified_count,
                "vulnerable": self.summary.vulnerable_count,
                "errors": self.summary.error_count,
            },
            "securityScore": self.summary.security_score,
            "overallStatus": self.summary.overall_status.value,
            "results": [
                {
                    "name": v.id,
                    "type": getattr(v.vulnerability_class, "value", v.vulnerability_class),
                    "function": v.target_function,
                    "description": v.description,
                    "status": v.status.value,
                    "result": v.result_label,
                    "details": v.evidence,
                    "proofGenerated": v.proof_generated,
                }
                for v in self.verdicts
            ],
            "proofCertificate": {
                "certificateId": cert.certificate_id,
                "contractHash": cert.contract_hash,
                "issuedAt": cert.issued_at.isoformat(),
                "verificationMethod": cert.verification_method,
                "provenProperties": list(cert.proven_properties),
                "statement": cert.statement,
                "disclaimer": cert.disclaimer,
            } if cert else None,
            "message": self.message,
        }
