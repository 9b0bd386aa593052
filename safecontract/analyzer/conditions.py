"""Verification condition generator.

Each function body is checked against one trigger per vulnerability class.
Triggers are independent: a function yields between zero and six conditions,
emitted in ``VulnerabilityClass`` member order. Arithmetic conditions that
the compiler already guards (Solidity 0.8+ outside ``unchecked``) are still
emitted, but carry a note the evaluator treats as proof.
"""

from __future__ import annotations

import logging
import re

from safecontract.core.types import (
    Contract,
    FunctionDef,
    VerificationCondition,
    VulnerabilityClass,
)

logger = logging.getLogger(__name__)


OVERFLOW_NOTE = "Solidity 0.8+ has built-in overflow protection"
UNDERFLOW_NOTE = "Solidity 0.8+ has built-in underflow protection"

# Anchored at a word start so a long identifier is not re-scanned from every
# offset inside it
_SUBTRACTION_RE = re.compile(r"\b\w+\s*-\s*\w+")
_INDEXED_UPDATE_RE = re.compile(r"\[\w+\]\s*[-+]=")
_REQUIRE_OPEN_RE = re.compile(r"require\s*\(")

# (id suffix, description template) per class
_CONDITION_TEXT: dict[VulnerabilityClass, tuple[str, str]] = {
    VulnerabilityClass.OVERFLOW: ("overflow", "Integer overflow check in {}"),
    VulnerabilityClass.UNDERFLOW: ("underflow", "Integer underflow check in {}"),
    VulnerabilityClass.INVARIANT_BALANCE: (
        "balance_preservation", "Balance preservation check in {}",
    ),
    VulnerabilityClass.DIVISION_BY_ZERO: ("div_zero", "Division by zero check in {}"),
    VulnerabilityClass.PRECONDITION: (
        "preconditions", "Precondition satisfiability in {}",
    ),
    VulnerabilityClass.REENTRANCY: (
        "reentrancy", "Reentrancy vulnerability check in {}",
    ),
}


def declaration_label(contract: Contract, index: int) -> tuple[str, str]:
    """Return ``(id stem, display name)`` for the function at ``index``.

    A name declared once keeps the plain ``name`` / ``name()`` form. Overloads
    get a 1-based ordinal in the id and their parameter types in the display
    name, e.g. ``ratio_2`` / ``ratio(uint256,uint256)``.
    """
    func = contract.functions[index]
    if not contract.is_overloaded(func.name):
        return func.name, f"{func.name}()"

    ordinal = sum(1 for f in contract.functions[: index + 1] if f.name == func.name)
    signature = ",".join(p.type for p in func.parameters)
    return f"{func.name}_{ordinal}", f"{func.name}({signature})"


def _condition(
    func: FunctionDef,
    vuln_class: VulnerabilityClass,
    label: tuple[str, str],
    index: int | None,
    note: str | None = None,
) -> VerificationCondition:
    suffix, template = _CONDITION_TEXT[vuln_class]
    stem, display = label
    return VerificationCondition(
        id=f"{stem}_{suffix}",
        vulnerability_class=vuln_class,
        target_function=func.name,
        description=template.format(display),
        note=note,
        function_index=index,
    )


def _arithmetic_unguarded(contract: Contract, body: str) -> bool:
    """True when the compiler does not revert on wrap-around for this body."""
    return (
        not contract.has_builtin_overflow_protection
        or contract.has_unchecked_block
        or "unchecked" in body
    )


def has_overflow_trigger(body: str) -> bool:
    return "+" in body or "*" in body


def has_underflow_trigger(body: str) -> bool:
    return "-=" in body or bool(_SUBTRACTION_RE.search(body))


def has_balance_trigger(func: FunctionDef) -> bool:
    return (
        "transfer" in func.name.lower()
        or "balance" in func.body
        or bool(_INDEXED_UPDATE_RE.search(func.body))
    )


def has_division_trigger(body: str) -> bool:
    return "/" in body


def has_precondition_trigger(body: str) -> bool:
    """``require(`` followed by a non-empty argument up to the first ``)``.

    A nested call inside require() is cut short at its own ``)``.
    """
    for match in _REQUIRE_OPEN_RE.finditer(body):
        close = body.find(")", match.end())
        if close == -1:
            # No later require() can be closed either
            return False
        if close > match.end():
            return True
    return False


def has_external_call_trigger(body: str) -> bool:
    return (
        ".call(" in body
        or ".call{" in body
        or ("transfer(" in body and "payable" in body)
    )


def conditions_for_function(
    contract: Contract, func: FunctionDef, index: int | None = None
) -> list[VerificationCondition]:
    """Conditions for one function, in fixed class order.

    ``index`` is the function's position in ``contract.functions``; it is
    looked up when omitted.
    """
    if index is None:
        index = next((i for i, f in enumerate(contract.functions) if f is func), None)
    if index is None:
        label = (func.name, f"{func.name}()")
    else:
        label = declaration_label(contract, index)

    body = func.body
    conditions: list[VerificationCondition] = []
    unguarded = _arithmetic_unguarded(contract, body)

    def add(vuln_class: VulnerabilityClass, note: str | None = None) -> None:
        conditions.append(_condition(func, vuln_class, label, index, note))

    if has_overflow_trigger(body):
        add(VulnerabilityClass.OVERFLOW, None if unguarded else OVERFLOW_NOTE)

    if has_underflow_trigger(body):
        add(VulnerabilityClass.UNDERFLOW, None if unguarded else UNDERFLOW_NOTE)

    if has_balance_trigger(func):
        add(VulnerabilityClass.INVARIANT_BALANCE)

    if has_division_trigger(body):
        add(VulnerabilityClass.DIVISION_BY_ZERO)

    if has_precondition_trigger(body):
        add(VulnerabilityClass.PRECONDITION)

    if has_external_call_trigger(body):
        add(VulnerabilityClass.REENTRANCY)

    return conditions


def generate(contract: Contract) -> list[VerificationCondition]:
    """All verification conditions for ``contract`` in declaration order."""
    conditions: list[VerificationCondition] = []
    for index, func in enumerate(contract.functions):
        conditions.extend(conditions_for_function(contract, func, index))

    logger.debug(
        "Generated %d conditions for %d functions",
        len(conditions),
        len(contract.functions),
    )
    return conditions
