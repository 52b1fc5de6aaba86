"""Activity ledger for batch operations."""

from recosim.audit.ledger import (
    INDEX_REBUILD,
    OPERATIONS,
    SEGMENT_RUN,
    ActivityLedger,
    LedgerEntry,
)

__all__ = ["INDEX_REBUILD", "OPERATIONS", "SEGMENT_RUN", "ActivityLedger", "LedgerEntry"]
