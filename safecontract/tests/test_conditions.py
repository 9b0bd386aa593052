"""Tests for safecontract.analyzer.conditions — per-function condition triggers."""

from __future__ import annotations

import time

from safecontract.analyzer.conditions import (
    OVERFLOW_NOTE,
    UNDERFLOW_NOTE,
    conditions_for_function,
    declaration_label,
    generate,
    has_balance_trigger,
    has_division_trigger,
    has_external_call_trigger,
    has_overflow_trigger,
    has_precondition_trigger,
    has_underflow_trigger,
)
from safecontract.analyzer.extractor import extract
from safecontract.core.types import FunctionDef, VulnerabilityClass


def _contract(body: str, version: str = "0.8.0", name: str = "f"):
    return extract(f"pragma solidity ^{version};\nfunction {name}() public {{{body}}}")


class TestTriggers:
    def test_overflow(self):
        assert has_overflow_trigger("a + b")
        assert has_overflow_trigger("a * b")
        assert not has_overflow_trigger("a - b")

    def test_underflow(self):
        assert has_underflow_trigger("x -= 1;")
        assert has_underflow_trigger("return a - b;")
        assert not has_underflow_trigger("x = -1;")

    def test_balance_by_name(self):
        func = FunctionDef(name="safeTransferFrom", body="")
        assert has_balance_trigger(func)

    def test_balance_by_body(self):
        assert has_balance_trigger(FunctionDef(name="f", body="return balanceOf(a);"))
        assert has_balance_trigger(FunctionDef(name="f", body="shares[who] += 1;"))
        assert not has_balance_trigger(FunctionDef(name="f", body="x = 1;"))

    def test_division_matches_any_slash(self):
        assert has_division_trigger("a / b")
        # comments inside the body count too
        assert has_division_trigger("x = 1; // note")

    def test_precondition(self):
        assert has_precondition_trigger("require(a > 0);")
        assert has_precondition_trigger("require (ok, \"msg\");")
        assert not has_precondition_trigger("require();")
        assert not has_precondition_trigger("revert();")

    def test_external_call(self):
        assert has_external_call_trigger('to.call("")')
        assert has_external_call_trigger('to.call{value: 1}("")')
        assert has_external_call_trigger("payable(to).transfer(1);")
        assert not has_external_call_trigger("token.transfer(to, 1);")


class TestConditionsForFunction:
    def test_ids_and_descriptions(self):
        contract = _contract(" total += amount; ", name="mint")
        (cond,) = conditions_for_function(contract, contract.functions[0])
        assert cond.id == "mint_overflow"
        assert cond.vulnerability_class == VulnerabilityClass.OVERFLOW
        assert cond.target_function == "mint"
        assert cond.description == "Integer overflow check in mint()"

    def test_builtin_protection_adds_note(self):
        contract = _contract(" a += 1; b -= 1; ")
        conds = conditions_for_function(contract, contract.functions[0])
        notes = {c.vulnerability_class: c.note for c in conds}
        assert notes[VulnerabilityClass.OVERFLOW] == OVERFLOW_NOTE
        assert notes[VulnerabilityClass.UNDERFLOW] == UNDERFLOW_NOTE

    def test_pre_08_has_no_note(self):
        contract = _contract(" a += 1; b -= 1; ", version="0.7.6")
        conds = conditions_for_function(contract, contract.functions[0])
        assert all(c.note is None for c in conds)

    def test_unchecked_removes_note(self):
        contract = _contract(" unchecked { a += 1; } ")
        conds = conditions_for_function(contract, contract.functions[0])
        assert conds[0].vulnerability_class == VulnerabilityClass.OVERFLOW
        assert conds[0].note is None

    def test_fixed_class_order(self):
        body = (
            " require(amount > 0);"
            " (bool ok, ) = msg.sender.call{value: amount}(\"\");"
            " balances[msg.sender] -= amount;"
            " total = total + amount / 2; "
        )
        contract = _contract(body, name="withdraw")
        classes = [c.vulnerability_class for c in conditions_for_function(contract, contract.functions[0])]
        assert classes == list(VulnerabilityClass)

    def test_no_triggers(self):
        contract = _contract(" ")
        assert conditions_for_function(contract, contract.functions[0]) == []


class TestGenerate:
    def test_vulnerable_vault(self, vulnerable_source):
        ids = [c.id for c in generate(extract(vulnerable_source))]
        assert ids == [
            "withdraw_underflow",
            "withdraw_balance_preservation",
            "withdraw_preconditions",
            "withdraw_reentrancy",
            "add_overflow",
            "div_div_zero",
        ]

    def test_safe_token(self, safe_source):
        conds = generate(extract(safe_source))
        assert [c.id for c in conds] == [
            "transfer_overflow",
            "transfer_underflow",
            "transfer_balance_preservation",
            "transfer_preconditions",
        ]

    def test_empty_contract(self):
        assert generate(extract("pragma solidity ^0.8.0;")) == []


OVERLOADED_SOURCE = """\
pragma solidity ^0.8.0;
contract Math {
    function ratio(uint256 a, uint256 b) public pure returns (uint256) {
        require(b > 0);
        return a / b;
    }
    function ratio(uint256 a, uint256 b, uint256 c) public pure returns (uint256) {
        return a / b / c;
    }
    function scale(uint256 a) public pure returns (uint256) { return a * 2; }
}
"""


class TestOverloads:
    def test_labels(self):
        contract = extract(OVERLOADED_SOURCE)
        assert declaration_label(contract, 0) == ("ratio_1", "ratio(uint256,uint256)")
        assert declaration_label(contract, 1) == ("ratio_2", "ratio(uint256,uint256,uint256)")
        assert declaration_label(contract, 2) == ("scale", "scale()")

    def test_ids_unique_per_declaration(self):
        conds = generate(extract(OVERLOADED_SOURCE))
        ids = [c.id for c in conds]
        assert len(ids) == len(set(ids))
        assert ids == [
            "ratio_1_div_zero",
            "ratio_1_preconditions",
            "ratio_2_div_zero",
            "scale_overflow",
        ]

    def test_conditions_carry_declaration_index(self):
        conds = generate(extract(OVERLOADED_SOURCE))
        assert [c.function_index for c in conds] == [0, 0, 1, 2]
        assert conds[2].target_function == "ratio"
        assert conds[2].description == "Division by zero check in ratio(uint256,uint256,uint256)"


class TestTriggerCost:
    """Triggers stay linear on bodies built from one long token."""

    def test_long_identifier_underflow(self):
        start = time.perf_counter()
        assert not has_underflow_trigger("a" * 200_000)
        assert has_underflow_trigger("a" * 200_000 + " - b")
        assert time.perf_counter() - start < 1.0

    def test_unclosed_requires(self):
        start = time.perf_counter()
        assert not has_precondition_trigger("require(" * 20_000)
        assert time.perf_counter() - start < 1.0

    def test_empty_require_then_real_one(self):
        assert has_precondition_trigger("require(); require(ok);")
