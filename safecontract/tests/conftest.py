"""Shared fixtures for the SafeContract test suite."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from safecontract.core.config import Settings
from safecontract.core.examples import EXAMPLE_CONTRACTS
from safecontract.pipeline.orchestrator import ScanOrchestrator


FIXED_TIME = datetime(2024, 1, 15, 12, 30, 0, tzinfo=timezone.utc)
FIXED_BYTES = bytes.fromhex("0123456789abcdef")


def fixed_random_bytes(n: int) -> bytes:
    """Deterministic randomness provider: repeats FIXED_BYTES."""
    return (FIXED_BYTES * (n // len(FIXED_BYTES) + 1))[:n]


def fixed_clock() -> datetime:
    return FIXED_TIME


# ── Mock Solidity Source ─────────────────────────────────────────────────────


VULNERABLE_VAULT_SOURCE = """\
// SPDX-License-Identifier: MIT
pragma solidity ^0.7.0;

contract Vault {
    mapping(address => uint256) public balances;

    function withdraw(uint256 amount) public {
        (bool success, ) = msg.sender.call{value: amount}("");
        require(success);
        balances[msg.sender] -= amount;
    }

    function add(uint256 a, uint256 b) public pure returns (uint256) {
        return a + b;
    }

    function div(uint256 a, uint256 b) public pure returns (uint256) {
        return a / b;
    }
}
"""


SAFE_TOKEN_SOURCE = """\
// SPDX-License-Identifier: MIT
pragma solidity ^0.8.20;

contract Token {
    mapping(address => uint256) public balances;

    function transfer(address to, uint256 amount) external {
        require(balances[msg.sender] >= amount, "Insufficient balance");
        balances[msg.sender] -= amount;
        balances[to] += amount;
    }
}
"""


INTERFACE_ONLY_SOURCE = """\
pragma solidity ^0.8.0;

interface IERC20 {
    function totalSupply() external view returns (uint256);
    function transfer(address to, uint256 amount) external returns (bool);
}
"""


@pytest.fixture
def vulnerable_source() -> str:
    return VULNERABLE_VAULT_SOURCE


@pytest.fixture
def safe_source() -> str:
    return SAFE_TOKEN_SOURCE


@pytest.fixture
def interface_source() -> str:
    return INTERFACE_ONLY_SOURCE


@pytest.fixture
def example_sources() -> dict[str, str]:
    return dict(EXAMPLE_CONTRACTS)


# ── Pipeline ─────────────────────────────────────────────────────────────────


@pytest.fixture
def providers() -> dict:
    """Keyword arguments fixing randomness and time for aggregation."""
    return {
        "random_bytes": fixed_random_bytes,
        "clock": fixed_clock,
        "verification_method": "Heuristic pattern analysis",
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(max_source_bytes=10_000)


@pytest.fixture
def orchestrator(settings: Settings) -> ScanOrchestrator:
    """Orchestrator with fixed randomness and clock."""
    return ScanOrchestrator(
        random_bytes=fixed_random_bytes,
        clock=fixed_clock,
        settings=settings,
    )


# ── API client ───────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(orchestrator: ScanOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to a fresh app using the deterministic orchestrator."""
    from safecontract.api.main import create_app
    from safecontract.api.routes.verify import get_orchestrator

    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
