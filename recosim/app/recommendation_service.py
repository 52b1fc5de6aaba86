"""Three-tier recommendation waterfall."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from recosim.app.ports.record_store import UNSEGMENTED, RecordStorePort
from recosim.errors import InvalidArgumentError, NotFoundError
from recosim.index.similarity import SimilarityIndex

logger = logging.getLogger(__name__)

DEFAULT_RECENT_INTERACTIONS = 3


class Strategy(str, Enum):
    """Waterfall tier that produced a recommendation list."""

    PERSONALIZED = "personalized"
    SEGMENT = "segment"
    POPULAR = "popular"


@dataclass(slots=True)
class RecommendationResult:
    """Ordered, duplicate-free product ids plus the tier that produced them."""

    product_ids: list[str] = field(default_factory=list)
    strategy: Strategy = Strategy.POPULAR

    def __iter__(self) -> Iterator[str]:
        return iter(self.product_ids)

    def __len__(self) -> int:
        return len(self.product_ids)


def dedupe_preserving_order(items: list[str]) -> list[str]:
    """Drop repeated ids, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


class RecommendationEngine:
    """Personalized, then segment-based, then popularity recommendations.

    Each tier runs only when the previous one produced no ids. A customer
    without a profile in the store is a cold start and goes straight to the
    popularity tier.
    """

    def __init__(
        self,
        store: RecordStorePort,
        index: SimilarityIndex,
        *,
        recent_interactions: int = DEFAULT_RECENT_INTERACTIONS,
    ) -> None:
        if recent_interactions <= 0:
            raise InvalidArgumentError(
                f"recent_interactions must be positive; got {recent_interactions}"
            )
        self._store = store
        self._index = index
        self._recent_interactions = recent_interactions

    def recommend(self, customer_id: str, top_n: int) -> RecommendationResult:
        """Return up to ``top_n`` product ids for ``customer_id``.

        Raises:
            InvalidArgumentError: If ``top_n`` is not positive
        """
        if top_n <= 0:
            raise InvalidArgumentError(f"top_n must be positive; got {top_n}")

        if self._store.get_customer(customer_id) is None:
            logger.info("Cold start for %s; using popularity ranking", customer_id)
            return RecommendationResult(self.popular(top_n), Strategy.POPULAR)

        personalized = self.personalized(customer_id, top_n)
        if personalized:
            logger.info("Personalized recommendations for %s: %d", customer_id, len(personalized))
            return RecommendationResult(personalized, Strategy.PERSONALIZED)

        by_segment = self.segment_based(customer_id, top_n)
        if by_segment:
            logger.info("Segment recommendations for %s: %d", customer_id, len(by_segment))
            return RecommendationResult(by_segment, Strategy.SEGMENT)

        logger.info("Falling back to popularity ranking for %s", customer_id)
        return RecommendationResult(self.popular(top_n), Strategy.POPULAR)

    def personalized(self, customer_id: str, top_n: int) -> list[str]:
        """Union of neighbours of the customer's most recent interactions."""
        recent = self._store.get_customer_interactions(
            customer_id, self._recent_interactions, most_recent_first=True
        )

        candidates: list[str] = []
        for product_id in dedupe_preserving_order(recent):
            try:
                candidates.extend(self._index.nearest_neighbors(product_id, top_n))
            except NotFoundError:
                logger.warning(
                    "Interaction product %s is not indexed; skipping for %s",
                    product_id,
                    customer_id,
                )
        return dedupe_preserving_order(candidates)[:top_n]

    def segment_based(self, customer_id: str, top_n: int) -> list[str]:
        """Best sellers among customers sharing this customer's segment."""
        label = self._store.get_customer_segment(customer_id)
        if label is None or label == UNSEGMENTED:
            return []
        return dedupe_preserving_order(self._store.get_segment_purchase_ranking(label, top_n))[
            :top_n
        ]

    def popular(self, top_n: int) -> list[str]:
        """Catalog ranked by stored popularity score."""
        return dedupe_preserving_order(self._store.get_products_by_popularity(top_n))[:top_n]
