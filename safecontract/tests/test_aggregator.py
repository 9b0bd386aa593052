"""Tests for safecontract.verifier — aggregation and certificate issuance."""

from __future__ import annotations

from datetime import datetime, timezone

from safecontract.analyzer.extractor import extract
from safecontract.core.types import (
    OverallStatus,
    Verdict,
    VerdictStatus,
    VerificationCondition,
    VulnerabilityClass,
)
from safecontract.verifier.aggregator import (
    NO_CONDITIONS_MESSAGE,
    NO_FUNCTIONS_MESSAGE,
    aggregate,
)
from safecontract.verifier.certificate import (
    CERTIFICATE_DISCLAIMER,
    contract_hash,
    issue_certificate,
    new_certificate_id,
)


def _verdict(func: str, status: VerdictStatus) -> Verdict:
    cond = VerificationCondition(
        id=f"{func}_div_zero",
        vulnerability_class=VulnerabilityClass.DIVISION_BY_ZERO,
        target_function=func,
        description=f"Division by zero check in {func}()",
    )
    return Verdict.from_condition(cond, status, "evidence")


SOURCE = "pragma solidity ^0.8.0;\nfunction f() public { }\nfunction g() public { }"


class TestContractHash:
    def test_known_digests(self):
        assert contract_hash("") == "e3b0c44298fc1c14"
        assert contract_hash("abc") == "ba7816bf8f01cfea"

    def test_length_and_alphabet(self):
        digest = contract_hash("contract C {}")
        assert len(digest) == 16
        assert all(c in "0123456789abcdef" for c in digest)

    def test_single_character_change(self):
        assert contract_hash("uint256 a;") != contract_hash("uint256 b;")

    def test_whitespace_is_significant(self):
        assert contract_hash("a;") != contract_hash("a; ")


class TestCertificate:
    def test_id_format(self):
        assert new_certificate_id(lambda n: b"\x00" * n) == "SC-0000000000000000"
        assert new_certificate_id(lambda n: b"\xab" * n) == "SC-ABABABABABABABAB"

    def test_proven_properties_are_verified_descriptions(self, providers):
        verdicts = [
            _verdict("f", VerdictStatus.VERIFIED),
            _verdict("g", VerdictStatus.ERROR),
        ]
        cert = issue_certificate(SOURCE, verdicts, **providers)
        assert cert.proven_properties == ["Division by zero check in f()"]
        assert cert.contract_hash == contract_hash(SOURCE)
        assert cert.issued_at == datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc)
        assert cert.certificate_id == "SC-0123456789ABCDEF"
        assert cert.disclaimer == CERTIFICATE_DISCLAIMER
        assert cert.verification_method == "Heuristic pattern analysis"


class TestAggregate:
    def test_no_functions(self, providers):
        outcome = aggregate("pragma solidity ^0.8.0;", extract("pragma solidity ^0.8.0;"), [], **providers)
        assert outcome.message == NO_FUNCTIONS_MESSAGE
        assert outcome.certificate is None
        assert outcome.summary.total_checks == 0
        assert outcome.summary.security_score == 100
        assert outcome.summary.overall_status == OverallStatus.VERIFIED_SAFE

    def test_functions_without_conditions(self, providers):
        outcome = aggregate(SOURCE, extract(SOURCE), [], **providers)
        assert outcome.message == NO_CONDITIONS_MESSAGE
        assert outcome.certificate is None
        assert outcome.summary.security_score == 100

    def test_all_verified_issues_certificate(self, providers):
        verdicts = [_verdict("f", VerdictStatus.VERIFIED), _verdict("g", VerdictStatus.VERIFIED)]
        outcome = aggregate(SOURCE, extract(SOURCE), verdicts, **providers)
        assert outcome.message is None
        assert outcome.summary.security_score == 100
        assert outcome.certificate is not None
        assert outcome.certificate.proven_properties == [
            "Division by zero check in f()",
            "Division by zero check in g()",
        ]

    def test_any_vulnerable_withholds_certificate(self, providers):
        verdicts = [_verdict("f", VerdictStatus.VERIFIED), _verdict("g", VerdictStatus.VULNERABLE)]
        outcome = aggregate(SOURCE, extract(SOURCE), verdicts, **providers)
        assert outcome.certificate is None
        assert outcome.summary.overall_status == OverallStatus.ISSUES_FOUND
        assert outcome.summary.security_score == 50

    def test_verdict_order_preserved(self, providers):
        verdicts = [_verdict("g", VerdictStatus.VULNERABLE), _verdict("f", VerdictStatus.VERIFIED)]
        outcome = aggregate(SOURCE, extract(SOURCE), verdicts, **providers)
        assert [v.id for v in outcome.verdicts] == ["g_div_zero", "f_div_zero"]
