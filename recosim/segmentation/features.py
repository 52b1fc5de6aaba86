"""Customer behaviour features aggregated from the record store."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import astuple, dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recosim.app.ports.record_store import RecordStorePort

FEATURE_NAMES = ("interaction_count", "purchase_count", "total_spent", "active_months")


@dataclass(frozen=True, slots=True)
class CustomerFeature:
    """Aggregated behaviour of one customer."""

    customer_id: str
    interaction_count: int = 0
    purchase_count: int = 0
    total_spent: float = 0.0
    active_months: int = 0

    def as_vector(self) -> tuple[float, ...]:
        """Numeric features in ``FEATURE_NAMES`` order."""
        return tuple(float(value) for value in astuple(self)[1:])


class CustomerFeatureExtractor:
    """Derive ``CustomerFeature`` values on demand from interaction and purchase records."""

    def __init__(self, store: RecordStorePort) -> None:
        self._store = store

    def extract(self, customer_id: str) -> CustomerFeature:
        """Aggregate one customer's history; unknown customers yield all zeros."""
        stats = self._store.get_customer_purchase_stats(customer_id)
        return CustomerFeature(
            customer_id=customer_id,
            interaction_count=self._store.count_customer_interactions(customer_id),
            purchase_count=stats.purchase_count,
            total_spent=stats.total_spent,
            active_months=stats.active_months,
        )

    def extract_many(self, customer_ids: Iterable[str]) -> list[CustomerFeature]:
        return [self.extract(customer_id) for customer_id in customer_ids]
