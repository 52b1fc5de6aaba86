"""Batch customer segmentation over the record store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from recosim.app.ports import LedgerPort, RecordStorePort
from recosim.audit.ledger import SEGMENT_RUN
from recosim.segmentation.features import CustomerFeatureExtractor
from recosim.segmentation.kmeans import SegmentationEngine
from recosim.utils.jsonl import atomic_write_jsonl

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SegmentationService:
    """Extract features for every customer, cluster them and persist the labels."""

    store: RecordStorePort
    extractor: CustomerFeatureExtractor
    engine: SegmentationEngine
    ledger: LedgerPort | None = None

    def update_customer_segments(self, k: int) -> dict[str, str]:
        """Re-segment all known customers.

        The full assignment is written to the store only after clustering
        completes. A store without customers is left untouched and yields an
        empty mapping.
        """
        customer_ids = self.store.list_customer_ids()
        if not customer_ids:
            logger.info("No customers to segment")
            return {}

        features = self.extractor.extract_many(customer_ids)
        assignments = self.engine.run(features, k)
        self.store.set_customer_segments(assignments)

        if self.ledger is not None:
            report = self.engine.last_run
            self.ledger.log(
                operation=SEGMENT_RUN,
                inputs=customer_ids,
                outputs=sorted(set(assignments.values())),
                args={
                    "k": k,
                    "iterations": report.iterations if report else None,
                    "converged": report.converged if report else None,
                    "segment_sizes": report.segment_sizes if report else {},
                },
            )
        return assignments

    def export(self, assignments: dict[str, str], path: Path) -> int:
        """Write ``{"customer_id", "segment"}`` rows to ``path`` as JSONL."""
        return atomic_write_jsonl(
            path,
            (
                {"customer_id": customer_id, "segment": label}
                for customer_id, label in assignments.items()
            ),
        )
