"""Domain exceptions raised by the scan pipeline."""

from __future__ import annotations


class SafeContractError(Exception):
    """Base class for pipeline-level failures.

    These abort the scan; they are never turned into verdicts.
    """


class SourceTooLargeError(SafeContractError):
    """The submitted source exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Source too large: {size} bytes (max: {limit})")
