"""Port interfaces for the recosim application layer.

These protocol interfaces define contracts for adapters.
Domain logic depends on these ports, never on concrete implementations.
"""

__all__ = [
    "CustomerProfile",
    "Interaction",
    "InteractionType",
    "LedgerPort",
    "Product",
    "Purchase",
    "PurchaseStats",
    "RecordStorePort",
    "UNSEGMENTED",
    "VectorizerPort",
]

from recosim.app.ports.ledger import LedgerPort
from recosim.app.ports.record_store import (
    UNSEGMENTED,
    CustomerProfile,
    Interaction,
    InteractionType,
    Product,
    Purchase,
    PurchaseStats,
    RecordStorePort,
)
from recosim.app.ports.vectorizer import VectorizerPort
