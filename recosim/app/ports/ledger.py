"""Ledger port interface for activity trail operations."""

from typing import Any, Protocol


class LedgerPort(Protocol):
    """Port interface for activity ledger operations.

    Adapters implementing this port must provide:
    - Append-only logging
    - Hash chain verification

    Side effects: Writes to the ledger file.
    """

    def log(
        self,
        operation: str,
        inputs: list[str],
        outputs: list[str],
        args: dict[str, Any],
    ) -> Any:
        """Log an operation (e.g. "index_rebuild", "segment_run")."""
        ...

    def verify(self) -> tuple[bool, str | None]:
        """Verify ledger integrity, returning ``(is_valid, error_message)``."""
        ...

    def read_all(self) -> list[Any]:
        """Read all ledger entries in order."""
        ...
