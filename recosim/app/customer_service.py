"""Customer profile and activity recording."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from recosim.app.ports import (
    CustomerProfile,
    Interaction,
    InteractionType,
    Purchase,
    RecordStorePort,
)
from recosim.errors import NotFoundError
from recosim.segmentation.features import CustomerFeature, CustomerFeatureExtractor


@dataclass(slots=True)
class CustomerService:
    """Record customer activity; unknown customers get a fresh profile on first event."""

    store: RecordStorePort
    extractor: CustomerFeatureExtractor

    def upsert_profile(self, customer_id: str, **fields: Any) -> CustomerProfile:
        """Create or update a profile with only the given fields changed."""
        self.store.upsert_customer(CustomerProfile(customer_id=customer_id, **fields))
        return self.get_profile(customer_id)

    def get_profile(self, customer_id: str) -> CustomerProfile:
        profile = self.store.get_customer(customer_id)
        if profile is None:
            raise NotFoundError(f"Unknown customer: {customer_id}")
        return profile

    def _ensure_profile(self, customer_id: str) -> None:
        if self.store.get_customer(customer_id) is None:
            self.store.upsert_customer(CustomerProfile(customer_id=customer_id))

    def record_interaction(
        self,
        customer_id: str,
        product_id: str,
        interaction_type: InteractionType = InteractionType.VIEW,
        *,
        duration: int = 0,
        timestamp: datetime | None = None,
    ) -> None:
        self._ensure_profile(customer_id)
        self.store.record_interaction(
            Interaction(
                customer_id=customer_id,
                product_id=product_id,
                interaction_type=interaction_type,
                duration=duration,
                timestamp=timestamp,
            )
        )

    def record_purchase(
        self,
        customer_id: str,
        product_id: str,
        *,
        quantity: int = 1,
        amount: float = 0.0,
        timestamp: datetime | None = None,
    ) -> None:
        self._ensure_profile(customer_id)
        self.store.record_purchase(
            Purchase(
                customer_id=customer_id,
                product_id=product_id,
                quantity=quantity,
                amount=amount,
                timestamp=timestamp,
            )
        )

    def features(self, customer_id: str) -> CustomerFeature:
        return self.extractor.extract(customer_id)
