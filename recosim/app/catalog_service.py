"""Catalog writes and similarity index maintenance."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from recosim.app.ports import LedgerPort, Product, RecordStorePort
from recosim.audit.ledger import INDEX_REBUILD
from recosim.errors import NotFoundError
from recosim.index.similarity import SimilarityIndex

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogService:
    """Keep the record store and the similarity index in step."""

    store: RecordStorePort
    index: SimilarityIndex
    ledger: LedgerPort | None = None

    def rebuild_index(self) -> int:
        """Re-vectorize the whole catalog and publish the new index."""
        products = self.store.get_product_texts()
        count = self.index.rebuild(products)
        if self.ledger is not None:
            self.ledger.log(
                operation=INDEX_REBUILD,
                inputs=[product_id for product_id, _ in products],
                outputs=[],
                args={"products": count, "dimensions": self.index.dimensions},
            )
        return count

    def add_product(self, product: Product) -> None:
        """Insert or edit a product and refresh its vector."""
        self.store.add_product(product)
        self.index.upsert(product.product_id, product.feature_text())
        logger.info("Catalog updated: %s", product.product_id)

    def get_product(self, product_id: str) -> Product:
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Unknown product: {product_id}")
        return product

    def similar_products(self, product_id: str, top_n: int) -> list[str]:
        return self.index.nearest_neighbors(product_id, top_n)
