"""Sample catalog and customer activity for demos and smoke tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recosim.app.ports import InteractionType, Product

if TYPE_CHECKING:
    from recosim.app.catalog_service import CatalogService
    from recosim.app.customer_service import CustomerService

SAMPLE_PRODUCTS: list[Product] = [
    Product(
        product_id="P1001",
        name="Wireless Headphones",
        category="Electronics",
        price=99.99,
        description="Premium wireless headphones with noise cancellation",
        tags=["audio", "wireless", "bluetooth"],
        popularity_score=8.5,
    ),
    Product(
        product_id="P1002",
        name="Smartphone",
        category="Electronics",
        price=699.99,
        description="Latest smartphone with high-resolution camera",
        tags=["mobile", "android", "camera"],
        popularity_score=9.2,
    ),
    Product(
        product_id="P1003",
        name="Running Shoes",
        category="Sports",
        price=79.99,
        description="Lightweight running shoes for marathon training",
        tags=["fitness", "running", "shoes"],
        popularity_score=7.8,
    ),
    Product(
        product_id="P1004",
        name="Bluetooth Speaker",
        category="Electronics",
        price=49.99,
        description="Portable wireless speaker with deep bass",
        tags=["audio", "wireless", "bluetooth", "portable"],
        popularity_score=7.1,
    ),
    Product(
        product_id="P1005",
        name="Trail Running Shoes",
        category="Sports",
        price=119.99,
        description="Grippy trail running shoes for rough terrain",
        tags=["fitness", "running", "shoes", "outdoor"],
        popularity_score=6.4,
    ),
    Product(
        product_id="P1006",
        name="Yoga Mat",
        category="Sports",
        price=29.99,
        description="Non-slip yoga mat for home fitness",
        tags=["fitness", "yoga"],
        popularity_score=5.9,
    ),
]


def load_sample_data(catalog: CatalogService, customers: CustomerService) -> dict[str, int]:
    """Populate the store with the sample catalog and two customers' activity."""
    for product in SAMPLE_PRODUCTS:
        catalog.store.add_product(product)
    catalog.rebuild_index()

    customers.upsert_profile(
        "CUST001", name="John Doe", age=32, gender="male", location="New York"
    )
    customers.record_interaction("CUST001", "P1001", InteractionType.VIEW, duration=120)
    customers.record_interaction("CUST001", "P1001", InteractionType.CART_ADD)
    customers.record_purchase("CUST001", "P1001", quantity=1, amount=99.99)

    customers.upsert_profile(
        "CUST002", name="Jane Smith", age=28, gender="female", location="Los Angeles"
    )
    customers.record_interaction("CUST002", "P1002", InteractionType.VIEW, duration=180)
    customers.record_interaction("CUST002", "P1003", InteractionType.WISHLIST)

    return {"products": len(SAMPLE_PRODUCTS), "customers": 2}
