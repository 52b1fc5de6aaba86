"""Application bootstrap wiring ports, adapters, and services."""

from __future__ import annotations

from dataclasses import dataclass

from recosim.app import (
    AuditService,
    CatalogService,
    CustomerService,
    RecommendationEngine,
    SegmentationService,
)
from recosim.app.adapters import HashingVectorizer, SqliteRecordStore
from recosim.app.ports import RecordStorePort, VectorizerPort
from recosim.audit.ledger import ActivityLedger
from recosim.config import Settings, get_settings
from recosim.index.similarity import SimilarityIndex
from recosim.segmentation import CustomerFeatureExtractor, SegmentationEngine


@dataclass(slots=True)
class ApplicationContainer:
    """Aggregates wired services and adapters for the CLI layer."""

    settings: Settings
    store: RecordStorePort
    vectorizer: VectorizerPort
    index: SimilarityIndex
    extractor: CustomerFeatureExtractor
    segmentation_engine: SegmentationEngine
    recommendation_engine: RecommendationEngine
    catalog_service: CatalogService
    customer_service: CustomerService
    segmentation_service: SegmentationService
    audit_service: AuditService


def _create_ledger(settings: Settings) -> ActivityLedger | None:
    if not settings.audit_enabled:
        return None
    return ActivityLedger(settings.get_audit_path())


def bootstrap_application(
    settings: Settings | None = None,
    *,
    store: RecordStorePort | None = None,
    build_index: bool = True,
) -> ApplicationContainer:
    """Instantiate adapters and services.

    Args:
        settings: Settings to use (defaults to the global instance)
        store: Record store override; defaults to SQLite at the configured path
        build_index: Vectorize the stored catalog before returning
    """
    active_settings = settings or get_settings()

    record_store = store or SqliteRecordStore(active_settings.get_database_path())
    vectorizer = HashingVectorizer(
        dimensions=active_settings.vector_dimensions,
        salt=active_settings.vector_salt,
    )
    index = SimilarityIndex(vectorizer)

    ledger = _create_ledger(active_settings)

    extractor = CustomerFeatureExtractor(record_store)
    segmentation_engine = SegmentationEngine(
        seed=active_settings.kmeans_seed,
        max_iterations=active_settings.kmeans_max_iterations,
    )
    recommendation_engine = RecommendationEngine(
        record_store,
        index,
        recent_interactions=active_settings.recent_interactions,
    )

    catalog_service = CatalogService(store=record_store, index=index, ledger=ledger)
    customer_service = CustomerService(store=record_store, extractor=extractor)
    segmentation_service = SegmentationService(
        store=record_store,
        extractor=extractor,
        engine=segmentation_engine,
        ledger=ledger,
    )

    if build_index:
        # Serving warm-up; explicit rebuilds go through CatalogService and are logged.
        index.rebuild(record_store.get_product_texts())

    return ApplicationContainer(
        settings=active_settings,
        store=record_store,
        vectorizer=vectorizer,
        index=index,
        extractor=extractor,
        segmentation_engine=segmentation_engine,
        recommendation_engine=recommendation_engine,
        catalog_service=catalog_service,
        customer_service=customer_service,
        segmentation_service=segmentation_service,
        audit_service=AuditService(ledger),
    )
