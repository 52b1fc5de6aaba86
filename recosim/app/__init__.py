"""Application layer for recosim.

This layer orchestrates the recommendation core without direct storage access.
All reads and writes are delegated to adapters via port interfaces.
"""

__all__ = [
    "AuditService",
    "CatalogService",
    "CustomerService",
    "RecommendationEngine",
    "RecommendationResult",
    "SegmentationService",
    "Strategy",
]

from recosim.app.audit_service import AuditService
from recosim.app.catalog_service import CatalogService
from recosim.app.customer_service import CustomerService
from recosim.app.recommendation_service import (
    RecommendationEngine,
    RecommendationResult,
    Strategy,
)
from recosim.app.segmentation_service import SegmentationService
