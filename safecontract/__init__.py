"""SafeContract — heuristic verification-condition scanner for Solidity sources."""

__version__ = "1.0.0"
