"""Record store port interface and the DTOs exchanged across it."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field

# Segment value carried by customers no segmentation run has labelled yet.
UNSEGMENTED = "new"


class InteractionType(str, Enum):
    """Kinds of customer/product interaction recorded by the storefront."""

    VIEW = "view"
    CART_ADD = "cart_add"
    WISHLIST = "wishlist"
    PURCHASE = "purchase"
    SEARCH = "search"


class Product(BaseModel):
    """Catalog entry."""

    product_id: str = Field(..., min_length=1, description="Unique product identifier (SKU)")
    name: str = Field(default="", description="Display name")
    category: str = Field(default="", description="Merchandising category")
    price: float = Field(default=0.0, ge=0.0, description="Unit price")
    description: str = Field(default="", description="Free-text description")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    popularity_score: float = Field(default=0.0, description="Stored popularity ranking score")

    def feature_text(self) -> str:
        """Concatenate the fields that feed the feature vectorizer."""
        return " ".join([self.name, self.description, " ".join(self.tags)])


class CustomerProfile(BaseModel):
    """Customer profile row."""

    customer_id: str = Field(..., min_length=1)
    name: str = ""
    age: int | None = Field(default=None, ge=0)
    gender: str | None = None
    location: str | None = None
    segment: str = Field(default=UNSEGMENTED, description="Latest segment label")
    preferences: dict[str, Any] = Field(default_factory=dict)
    last_activity: str | None = Field(default=None, description="'YYYY-MM-DD HH:MM:SS' timestamp")


class Interaction(BaseModel):
    """Single interaction event."""

    customer_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    interaction_type: InteractionType = InteractionType.VIEW
    timestamp: datetime | None = Field(default=None, description="Event time (now when omitted)")
    duration: int = Field(default=0, ge=0, description="Dwell time in seconds")


class Purchase(BaseModel):
    """Single purchase event."""

    customer_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    amount: float = Field(default=0.0, ge=0.0)
    timestamp: datetime | None = Field(default=None, description="Event time (now when omitted)")


class PurchaseStats(BaseModel):
    """Aggregated purchase history of one customer."""

    purchase_count: int = 0
    total_spent: float = 0.0
    active_months: int = 0


class RecordStorePort(Protocol):
    """Port interface for the storefront record store.

    Implementations must bind every value as a query parameter; identifiers
    and free text never reach the query string.

    Side effects: Reads and writes persistent storage.
    """

    # Queries consumed by the recommendation core

    def get_product_texts(self) -> list[tuple[str, str]]:
        """Return ``(product_id, concatenated text)`` in insertion order."""
        ...

    def get_customer_interactions(
        self, customer_id: str, limit: int, most_recent_first: bool = True
    ) -> list[str]:
        """Return product ids of the customer's interactions, newest first by default."""
        ...

    def get_customer_purchase_stats(self, customer_id: str) -> PurchaseStats:
        """Return purchase count, total spent and distinct active months."""
        ...

    def get_products_by_popularity(self, top_n: int) -> list[str]:
        """Return up to ``top_n`` product ids by descending popularity score."""
        ...

    def get_segment_purchase_ranking(self, segment_label: str, top_n: int) -> list[str]:
        """Return product ids ranked by purchase count within ``segment_label``."""
        ...

    def count_customer_interactions(self, customer_id: str) -> int:
        """Return the number of distinct interactions recorded for a customer."""
        ...

    def get_customer_segment(self, customer_id: str) -> str | None:
        """Return the customer's segment label, or None for an unknown customer."""
        ...

    def list_customer_ids(self) -> list[str]:
        """Return all customer ids in insertion order."""
        ...

    def set_customer_segments(self, assignments: dict[str, str]) -> None:
        """Persist a full segment assignment mapping."""
        ...

    # Catalog and customer writes

    def add_product(self, product: Product) -> None:
        """Insert or update a product."""
        ...

    def get_product(self, product_id: str) -> Product | None:
        """Return a product or None."""
        ...

    def get_customer(self, customer_id: str) -> CustomerProfile | None:
        """Return a customer profile or None."""
        ...

    def upsert_customer(self, profile: CustomerProfile) -> None:
        """Insert or update a customer profile."""
        ...

    def record_interaction(self, interaction: Interaction) -> None:
        """Append an interaction event."""
        ...

    def record_purchase(self, purchase: Purchase) -> None:
        """Append a purchase event."""
        ...
