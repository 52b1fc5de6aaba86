"""Append-only activity ledger with a SHA-256 hash chain.

Every batch operation (index rebuild, segmentation run) appends one JSON line.
Each line carries the digest of its predecessor, so editing, dropping or
reordering lines in the middle of the file breaks the chain.
"""

from __future__ import annotations

import hmac
import json
import logging
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from recosim import __version__
from recosim.utils.hashing import compute_sha256

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64

INDEX_REBUILD = "index_rebuild"
SEGMENT_RUN = "segment_run"
OPERATIONS = (INDEX_REBUILD, SEGMENT_RUN)


class LedgerEntry(BaseModel):
    """One ledger line; ``entry_hash`` covers every other field."""

    timestamp: str = Field(..., description="UTC ISO 8601 time of the operation")
    operation: str = Field(..., description="index_rebuild, segment_run, ...")
    inputs: list[str] = Field(default_factory=list, description="Product or customer ids read")
    outputs: list[str] = Field(default_factory=list, description="Labels or ids produced")
    args: dict[str, Any] = Field(default_factory=dict, description="Run parameters and summary")
    versions: dict[str, str] = Field(default_factory=dict)
    previous_hash: str = Field(default=GENESIS_HASH, description="Digest of the preceding entry")
    sequence: int | None = Field(default=None, ge=1)
    entry_hash: str | None = None

    def compute_hash(self) -> str:
        payload = self.model_dump(mode="json", exclude={"entry_hash"}, exclude_none=True)
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return compute_sha256(canonical.encode("utf-8"))

    def model_post_init(self, __context: Any) -> None:
        if self.entry_hash is None:
            self.entry_hash = self.compute_hash()


class ActivityLedger:
    """JSONL ledger of batch operations, chained by ``previous_hash``."""

    def __init__(self, ledger_path: Path) -> None:
        self.ledger_path = Path(ledger_path)
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)

        tail: LedgerEntry | None = None
        count = 0
        for count, tail in enumerate(self._iter_entries(), 1):
            pass
        self._head = (tail.entry_hash if tail else None) or GENESIS_HASH
        self._next_sequence = ((tail.sequence if tail else None) or count) + 1

    def _iter_entries(self) -> Iterator[LedgerEntry]:
        if not self.ledger_path.exists():
            return
        with self.ledger_path.open(encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, 1):
                if not line.strip():
                    continue
                try:
                    yield LedgerEntry.model_validate_json(line)
                except ValidationError as exc:
                    raise ValueError(f"{self.ledger_path}:{line_no}: unreadable entry ({exc})") from exc

    def log(
        self,
        operation: str,
        inputs: list[str] | None = None,
        outputs: list[str] | None = None,
        args: dict[str, Any] | None = None,
        versions: dict[str, str] | None = None,
    ) -> LedgerEntry:
        """Append ``operation`` and return the entry as written."""
        entry = LedgerEntry(
            timestamp=datetime.now(UTC).isoformat(),
            operation=operation,
            inputs=list(inputs or []),
            outputs=list(outputs or []),
            args=dict(args or {}),
            versions={"recosim": __version__, **(versions or {})},
            previous_hash=self._head,
            sequence=self._next_sequence,
        )

        line = entry.model_dump_json() + "\n"
        with self.ledger_path.open("a", encoding="utf-8") as handle:
            handle.write(line)
            handle.flush()
            os.fsync(handle.fileno())

        self._head = entry.entry_hash or GENESIS_HASH
        self._next_sequence += 1
        logger.debug("Ledger %s #%d: %s", self.ledger_path.name, entry.sequence, operation)
        return entry

    def read_all(self) -> list[LedgerEntry]:
        """Entries in file order."""
        return list(self._iter_entries())

    def get_by_operation(self, operation: str) -> list[LedgerEntry]:
        return [entry for entry in self._iter_entries() if entry.operation == operation]

    def verify(self) -> tuple[bool, str | None]:
        """Walk the chain from the genesis hash.

        Returns:
            ``(True, None)`` for an intact ledger, otherwise ``(False, reason)``
        """
        expected_previous = GENESIS_HASH
        try:
            for position, entry in enumerate(self._iter_entries(), 1):
                if entry.entry_hash is None or entry.sequence is None:
                    return False, f"Entry {position} lacks entry_hash or sequence"
                if not hmac.compare_digest(entry.entry_hash, entry.compute_hash()):
                    return False, f"Entry {position} has invalid hash; its content was modified"
                if entry.previous_hash != expected_previous:
                    return False, f"Entry {position} breaks hash chain; an entry before it is missing or moved"
                if entry.sequence != position:
                    return False, f"Entry {position} carries sequence {entry.sequence}"
                expected_previous = entry.entry_hash
        except ValueError as exc:
            return False, str(exc)
        return True, None
