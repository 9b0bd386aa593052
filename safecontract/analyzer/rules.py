"""Rule evaluator — one rule per vulnerability class.

Every rule inspects the raw body of the function a condition targets and
returns exactly one ``Verdict``. Rules are textual heuristics: the reentrancy
rule compares character offsets, it does not follow control flow.

``InvariantBalanceRule`` and ``PreconditionRule`` can never report a
vulnerability; their verdicts only record which pattern was seen.
"""

from __future__ import annotations

import abc
import logging

from safecontract.core.types import (
    Contract,
    VerdictStatus,
    Verdict,
    VerificationCondition,
    VulnerabilityClass,
)

logger = logging.getLogger(__name__)


class BaseRule(abc.ABC):
    """Abstract base class for condition rules.

    Rule metadata:
        - VULNERABILITY_CLASS: The class of conditions this rule decides
        - NAME: Human-readable rule name
        - DESCRIPTION: What the rule looks for
    """

    VULNERABILITY_CLASS: VulnerabilityClass
    NAME: str = ""
    DESCRIPTION: str = ""

    @abc.abstractmethod
    def check(self, condition: VerificationCondition, body: str) -> Verdict:
        """Decide ``condition`` given the target function's body."""
        ...

    def _verified(self, condition: VerificationCondition, evidence: str) -> Verdict:
        return Verdict.from_condition(condition, VerdictStatus.VERIFIED, f"PROOF: {evidence}")

    def _vulnerable(self, condition: VerificationCondition, evidence: str) -> Verdict:
        return Verdict.from_condition(
            condition, VerdictStatus.VULNERABLE, f"COUNTEREXAMPLE: {evidence}"
        )


class _ArithmeticRule(BaseRule):
    """Shared logic for overflow and underflow conditions."""

    COUNTEREXAMPLE: str = ""

    def check(self, condition: VerificationCondition, body: str) -> Verdict:
        if condition.note:
            return self._verified(condition, f"{condition.note} (auto-revert)")
        if "SafeMath" in body:
            return self._verified(condition, "SafeMath library guards the arithmetic")
        if "require" in body:
            return self._verified(
                condition, "Operands are constrained by require() preconditions"
            )
        return self._vulnerable(condition, self.COUNTEREXAMPLE)


class OverflowRule(_ArithmeticRule):
    VULNERABILITY_CLASS = VulnerabilityClass.OVERFLOW
    NAME = "Integer Overflow"
    DESCRIPTION = "Unchecked addition or multiplication on 256-bit integers."
    COUNTEREXAMPLE = (
        "a + b wraps for a = 2^256 - 1, b = 1 "
        "(no compiler check, SafeMath or require guard)"
    )


class UnderflowRule(_ArithmeticRule):
    VULNERABILITY_CLASS = VulnerabilityClass.UNDERFLOW
    NAME = "Integer Underflow"
    DESCRIPTION = "Unchecked subtraction on unsigned integers."
    COUNTEREXAMPLE = (
        "balance - amount wraps for balance = 0, amount = 1 "
        "(no compiler check, SafeMath or require guard)"
    )


class InvariantBalanceRule(BaseRule):
    VULNERABILITY_CLASS = VulnerabilityClass.INVARIANT_BALANCE
    NAME = "Balance Preservation"
    DESCRIPTION = "Debits and credits of balance mappings appear together."

    def check(self, condition: VerificationCondition, body: str) -> Verdict:
        if "-=" in body and "+=" in body:
            return self._verified(
                condition,
                "Total balance is preserved (subtract + add pattern detected)",
            )
        return self._verified(condition, "Balance operations appear consistent")


class DivisionByZeroRule(BaseRule):
    VULNERABILITY_CLASS = VulnerabilityClass.DIVISION_BY_ZERO
    NAME = "Division by Zero"
    DESCRIPTION = "Division without a require() that the divisor is non-zero."

    def check(self, condition: VerificationCondition, body: str) -> Verdict:
        if "require" in body and ("> 0" in body or "!= 0" in body):
            return self._verified(condition, "Divisor is checked non-zero by require()")
        return self._vulnerable(
            condition, "Division by zero possible if the denominator is not checked"
        )


class PreconditionRule(BaseRule):
    VULNERABILITY_CLASS = VulnerabilityClass.PRECONDITION
    NAME = "Precondition Satisfiability"
    DESCRIPTION = "require() preconditions admit at least one calling state."

    def check(self, condition: VerificationCondition, body: str) -> Verdict:
        return self._verified(
            condition, "Preconditions are satisfiable - function can be called"
        )


class ReentrancyRule(BaseRule):
    VULNERABILITY_CLASS = VulnerabilityClass.REENTRANCY
    NAME = "Reentrancy"
    DESCRIPTION = "External call placed before a state update."

    @staticmethod
    def call_index(body: str) -> int:
        """Latest of the first offsets of ``.call``/``.transfer``/``.send``."""
        return max(body.find(".call"), body.find(".transfer"), body.find(".send"))

    @staticmethod
    def state_update_index(body: str) -> int:
        """Latest of the first ``-=``/``+=`` and the last ``= `` (not ``==``)."""
        return max(body.find("-="), body.find("+="), body.rfind("= "))

    def check(self, condition: VerificationCondition, body: str) -> Verdict:
        call_at = self.call_index(body)
        update_at = self.state_update_index(body)
        logger.debug(
            "%s: external call at %d, state update at %d", condition.id, call_at, update_at
        )
        if call_at != -1 and update_at != -1 and call_at < update_at:
            return self._vulnerable(
                condition,
                "External call before state update - reentrancy possible",
            )
        return self._verified(
            condition,
            "Checks-Effects-Interactions pattern followed or no state after call",
        )


def _build_rule_table() -> dict[VulnerabilityClass, BaseRule]:
    table: dict[VulnerabilityClass, BaseRule] = {}
    for rule_cls in (
        OverflowRule,
        UnderflowRule,
        InvariantBalanceRule,
        DivisionByZeroRule,
        PreconditionRule,
        ReentrancyRule,
    ):
        table[rule_cls.VULNERABILITY_CLASS] = rule_cls()

    missing = set(VulnerabilityClass) - set(table)
    if missing:
        raise RuntimeError(
            "No rule registered for: " + ", ".join(sorted(m.value for m in missing))
        )
    return table


RULES: dict[VulnerabilityClass, BaseRule] = _build_rule_table()


def evaluate(condition: VerificationCondition, contract: Contract) -> Verdict:
    """Decide a single condition.

    A condition whose class has no rule becomes an error verdict instead of
    aborting the scan.
    """
    rule = RULES.get(condition.vulnerability_class)
    if rule is None:
        logger.warning(
            "No rule for vulnerability class %r (condition %s)",
            condition.vulnerability_class,
            condition.id,
        )
        return Verdict.from_condition(
            condition,
            VerdictStatus.ERROR,
            f"No rule for vulnerability class '{condition.vulnerability_class}'",
        )

    func = contract.get_function(condition.target_function, condition.function_index)
    body = func.body if func is not None else ""
    verdict = rule.check(condition, body)
    logger.debug("%s → %s", condition.id, verdict.status.value)
    return verdict
