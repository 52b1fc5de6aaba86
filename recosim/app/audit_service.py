"""Read side of the activity ledger: past batch runs and chain checks."""

from __future__ import annotations

from dataclasses import dataclass

from recosim.audit.ledger import OPERATIONS, ActivityLedger, LedgerEntry
from recosim.errors import AuditDisabledError, InvalidArgumentError


@dataclass(slots=True)
class AuditService:
    """Query the index rebuilds and segmentation runs recorded so far.

    ``ledger`` is None when auditing is switched off. Queries then raise
    AuditDisabledError, so an empty result always means nothing was recorded.
    """

    ledger: ActivityLedger | None

    def _require_ledger(self) -> ActivityLedger:
        if self.ledger is None:
            raise AuditDisabledError("Activity ledger is disabled (RECOSIM_AUDIT_ENABLED=false)")
        return self.ledger

    def entries(
        self, operation: str | None = None, *, last: int | None = None
    ) -> list[LedgerEntry]:
        """Return recorded runs in ledger order.

        Args:
            operation: Keep only this operation (``index_rebuild`` or ``segment_run``)
            last: Keep only the most recent ``last`` matching entries
        """
        ledger = self._require_ledger()
        if last is not None and last <= 0:
            raise InvalidArgumentError(f"last must be positive, got {last}")

        if operation is None:
            found = ledger.read_all()
        elif operation in OPERATIONS:
            found = ledger.get_by_operation(operation)
        else:
            raise InvalidArgumentError(
                f"Unknown operation {operation!r}; expected one of: {', '.join(OPERATIONS)}"
            )
        return found[-last:] if last is not None else found

    def verify(self) -> tuple[bool, str | None]:
        return self._require_ledger().verify()
