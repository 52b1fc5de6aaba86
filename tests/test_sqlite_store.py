"""Tests for the SQLite record store adapter."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from recosim.app.adapters import SqliteRecordStore
from recosim.app.adapters.sqlite_store import TIMESTAMP_FORMAT, format_timestamp
from recosim.app.ports import (
    UNSEGMENTED,
    CustomerProfile,
    Interaction,
    InteractionType,
    Product,
    Purchase,
)


def test_product_texts_follow_insertion_order(store: SqliteRecordStore) -> None:
    store.add_product(Product(product_id="B", name="Blue hat", tags=["winter"]))
    store.add_product(
        Product(product_id="A", name="Red shoes", description="running", tags=["sport", "red"])
    )

    assert store.get_product_texts() == [
        ("B", "Blue hat  winter"),
        ("A", "Red shoes running sport red"),
    ]


def test_editing_product_keeps_position(store: SqliteRecordStore) -> None:
    store.add_product(Product(product_id="A", name="first"))
    store.add_product(Product(product_id="B", name="second"))
    store.add_product(Product(product_id="A", name="renamed", price=12.5))

    assert [pid for pid, _ in store.get_product_texts()] == ["A", "B"]
    product = store.get_product("A")
    assert product is not None
    assert product.name == "renamed"
    assert product.price == 12.5
    assert store.get_product("missing") is None


def test_interactions_ordered_by_recency(store: SqliteRecordStore) -> None:
    events = [
        ("P1", "2024-01-01 09:00:00"),
        ("P2", "2024-01-03 09:00:00"),
        ("P3", "2024-01-02 09:00:00"),
        ("P4", "2024-01-03 09:00:00"),
    ]
    for product_id, ts in events:
        store.record_interaction(Interaction(customer_id="C1", product_id=product_id, timestamp=ts))

    # Same timestamp: the later recorded event counts as more recent.
    assert store.get_customer_interactions("C1", 10) == ["P4", "P2", "P3", "P1"]
    assert store.get_customer_interactions("C1", 2) == ["P4", "P2"]
    assert store.get_customer_interactions("C1", 10, most_recent_first=False) == [
        "P1",
        "P3",
        "P2",
        "P4",
    ]
    assert store.get_customer_interactions("C1", 0) == []
    assert store.get_customer_interactions("other", 5) == []


def test_interaction_defaults_timestamp(store: SqliteRecordStore) -> None:
    store.record_interaction(
        Interaction(customer_id="C1", product_id="P1", interaction_type=InteractionType.WISHLIST)
    )

    assert store.get_customer_interactions("C1", 1) == ["P1"]
    assert store.count_customer_interactions("C1") == 1


def test_interaction_timestamps_normalized_before_ordering(store: SqliteRecordStore) -> None:
    # ISO "T" and space separators must compare as times, not as text.
    store.record_interaction(
        Interaction(customer_id="C1", product_id="OLD", timestamp="2024-05-02T09:00:00")
    )
    store.record_interaction(
        Interaction(customer_id="C1", product_id="NEW", timestamp="2024-05-02 10:00:00")
    )

    assert store.get_customer_interactions("C1", 1) == ["NEW"]
    assert store.get_customer_interactions("C1", 2, most_recent_first=False) == ["OLD", "NEW"]


def test_aware_timestamps_stored_as_local_time() -> None:
    moment = datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)

    assert format_timestamp(moment) == moment.astimezone().strftime(TIMESTAMP_FORMAT)
    assert format_timestamp(datetime(2024, 5, 2, 9, 0, 30)) == "2024-05-02 09:00:30"


@pytest.mark.parametrize("model", [Interaction, Purchase])
def test_unparseable_timestamp_rejected(model) -> None:
    with pytest.raises(ValidationError):
        model(customer_id="C1", product_id="P1", timestamp="yesterday")



def test_purchase_stats(store: SqliteRecordStore) -> None:
    store.record_purchase(
        Purchase(customer_id="C1", product_id="P1", amount=20.0, timestamp="2023-12-31 23:59:59")
    )
    store.record_purchase(
        Purchase(customer_id="C1", product_id="P1", amount=5.25, timestamp="2024-01-01 00:00:00")
    )
    store.record_purchase(Purchase(customer_id="C2", product_id="P1", amount=99.0))

    stats = store.get_customer_purchase_stats("C1")
    assert stats.purchase_count == 2
    assert stats.total_spent == 25.25
    assert stats.active_months == 2

    empty = store.get_customer_purchase_stats("nobody")
    assert (empty.purchase_count, empty.total_spent, empty.active_months) == (0, 0.0, 0)


def test_popularity_ranking(store: SqliteRecordStore) -> None:
    for product_id, score in [("A", 0.3), ("B", 0.8), ("C", 0.8), ("D", 0.1)]:
        store.add_product(Product(product_id=product_id, popularity_score=score))

    assert store.get_products_by_popularity(3) == ["B", "C", "A"]
    assert store.get_products_by_popularity(10) == ["B", "C", "A", "D"]
    assert store.get_products_by_popularity(0) == []


def test_segment_purchase_ranking(store: SqliteRecordStore) -> None:
    for product_id in ("A", "B", "C"):
        store.add_product(Product(product_id=product_id))
    store.upsert_customer(CustomerProfile(customer_id="C1", segment="segment_0"))
    store.upsert_customer(CustomerProfile(customer_id="C2", segment="segment_0"))
    store.upsert_customer(CustomerProfile(customer_id="C3", segment="segment_1"))
    purchases = [("C1", "C"), ("C2", "C"), ("C1", "B"), ("C2", "A"), ("C3", "A"), ("C3", "A")]
    for customer_id, product_id in purchases:
        store.record_purchase(Purchase(customer_id=customer_id, product_id=product_id))

    # C leads; A and B tie on one purchase each and fall back to catalog order.
    assert store.get_segment_purchase_ranking("segment_0", 5) == ["C", "A", "B"]
    assert store.get_segment_purchase_ranking("segment_1", 5) == ["A"]
    assert store.get_segment_purchase_ranking("segment_9", 5) == []


def test_segments_persist_and_partial_update_keeps_them(store: SqliteRecordStore) -> None:
    store.upsert_customer(CustomerProfile(customer_id="C1", name="Ada"))
    store.upsert_customer(CustomerProfile(customer_id="C2"))
    assert store.get_customer_segment("C1") == UNSEGMENTED

    store.set_customer_segments({"C1": "segment_0", "C2": "segment_1"})
    store.upsert_customer(CustomerProfile(customer_id="C1", location="Lisbon"))

    profile = store.get_customer("C1")
    assert profile is not None
    assert profile.segment == "segment_0"
    assert profile.name == "Ada"
    assert profile.location == "Lisbon"
    assert profile.last_activity is not None
    assert store.get_customer_segment("C2") == "segment_1"
    assert store.get_customer_segment("ghost") is None
    assert store.list_customer_ids() == ["C1", "C2"]


def test_hostile_identifiers_are_plain_values(store: SqliteRecordStore) -> None:
    hostile = "x'; DROP TABLE customers; --"
    store.upsert_customer(CustomerProfile(customer_id=hostile))
    store.record_interaction(Interaction(customer_id=hostile, product_id="P1' OR '1'='1"))

    assert store.list_customer_ids() == [hostile]
    assert store.get_customer_interactions(hostile, 5) == ["P1' OR '1'='1"]
    assert store.get_customer_interactions("' OR '1'='1", 5) == []
    assert store.get_segment_purchase_ranking("' OR 1=1 --", 5) == []


def test_data_survives_reopen(temp_dir: Path) -> None:
    path = temp_dir / "nested" / "records.db"
    first = SqliteRecordStore(path)
    first.add_product(Product(product_id="P1", name="kept"))
    first.close()

    second = SqliteRecordStore(path)
    try:
        assert second.get_product_texts() == [("P1", "kept  ")]
    finally:
        second.close()


def test_in_memory_store() -> None:
    store = SqliteRecordStore(":memory:")
    try:
        store.add_product(Product(product_id="P1"))
        assert store.get_products_by_popularity(1) == ["P1"]
    finally:
        store.close()
