"""Tests for the cosine similarity index."""

from __future__ import annotations

import math

import numpy as np
import pytest

from recosim.app.adapters import HashingVectorizer
from recosim.errors import InvalidArgumentError, NotFoundError
from recosim.index.similarity import SimilarityIndex, cosine_similarity

CATALOG = [
    ("P1", "wireless headphones noise cancellation audio bluetooth"),
    ("P2", "smartphone high resolution camera mobile android"),
    ("P3", "running shoes marathon training fitness"),
    ("P4", "portable wireless speaker audio bluetooth"),
    ("P5", "trail running shoes outdoor fitness"),
]


@pytest.fixture
def index(vectorizer: HashingVectorizer) -> SimilarityIndex:
    idx = SimilarityIndex(vectorizer)
    idx.rebuild(CATALOG)
    return idx


def test_cosine_of_non_zero_vector_with_itself_is_one() -> None:
    v = np.array([0.3, -1.2, 4.0])
    assert cosine_similarity(v, v) == pytest.approx(1.0)


def test_cosine_with_zero_vector_is_zero_not_nan() -> None:
    zero = np.zeros(3)
    score = cosine_similarity(zero, np.array([1.0, 2.0, 3.0]))
    assert score == 0.0
    assert not math.isnan(cosine_similarity(zero, zero))


def test_cosine_orthogonal_and_opposite() -> None:
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-2.0, 0.0]) == pytest.approx(-1.0)


def test_cosine_rejects_mismatched_shapes() -> None:
    with pytest.raises(InvalidArgumentError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_shared_tokens_rank_higher(vectorizer: HashingVectorizer) -> None:
    idx = SimilarityIndex(vectorizer)
    idx.rebuild([("A", "red shoes"), ("B", "red shoes running"), ("C", "blue hat")])

    assert idx.nearest_neighbors("A", 2) == ["B", "C"]


def test_query_product_never_in_its_own_result(index: SimilarityIndex) -> None:
    for product_id, _ in CATALOG:
        neighbours = index.nearest_neighbors(product_id, len(CATALOG))
        assert product_id not in neighbours
        assert len(neighbours) == len(CATALOG) - 1
        assert len(set(neighbours)) == len(neighbours)


def test_related_products_rank_first(index: SimilarityIndex) -> None:
    assert index.nearest_neighbors("P1", 1) == ["P4"]
    assert index.nearest_neighbors("P3", 1) == ["P5"]


def test_top_n_limits_result(index: SimilarityIndex) -> None:
    assert len(index.nearest_neighbors("P1", 2)) == 2


def test_unknown_product_raises_not_found(index: SimilarityIndex) -> None:
    with pytest.raises(NotFoundError):
        index.nearest_neighbors("missing", 3)
    # NotFoundError is also a KeyError for mapping-style callers.
    with pytest.raises(KeyError):
        index.nearest_neighbors("missing", 3)


@pytest.mark.parametrize("top_n", [0, -1])
def test_non_positive_top_n_rejected(index: SimilarityIndex, top_n: int) -> None:
    with pytest.raises(InvalidArgumentError):
        index.nearest_neighbors("P1", top_n)


def test_empty_index_and_single_product(vectorizer: HashingVectorizer) -> None:
    idx = SimilarityIndex(vectorizer)
    assert len(idx) == 0
    with pytest.raises(NotFoundError):
        idx.nearest_neighbors("P1", 3)

    idx.rebuild([("P1", "only product")])
    assert idx.nearest_neighbors("P1", 3) == []


def test_ties_keep_insertion_order(table_vectorizer_factory) -> None:
    vectorizer = table_vectorizer_factory(
        {"query": [1.0, 0.0], "same": [2.0, 0.0], "other": [0.0, 1.0]}
    )
    idx = SimilarityIndex(vectorizer)
    idx.rebuild(
        [
            ("Z", "other"),
            ("D", "same"),
            ("Q", "query"),
            ("B", "same"),
            ("empty", "unknown text"),
            ("C", "same"),
        ]
    )

    assert idx.nearest_neighbors("Q", 5) == ["D", "B", "C", "Z", "empty"]


def test_zero_vector_product_scores_zero(table_vectorizer_factory) -> None:
    vectorizer = table_vectorizer_factory({"pos": [1.0, 0.0], "neg": [-1.0, 0.0]})
    idx = SimilarityIndex(vectorizer)
    idx.rebuild([("P", "pos"), ("N", "neg"), ("E", "")])

    # Zero-norm E sits between the positive and negative similarities.
    assert idx.nearest_neighbors("P", 2) == ["E", "N"]
    assert idx.similarity("E", "P") == 0.0
    # Querying a zero vector ranks everything at 0, so insertion order wins.
    assert idx.nearest_neighbors("E", 2) == ["P", "N"]


def test_rebuild_twice_is_idempotent(vectorizer: HashingVectorizer) -> None:
    idx = SimilarityIndex(vectorizer)
    idx.rebuild(CATALOG)
    first = {pid: idx.nearest_neighbors(pid, 4) for pid, _ in CATALOG}
    idx.rebuild(CATALOG)
    second = {pid: idx.nearest_neighbors(pid, 4) for pid, _ in CATALOG}

    assert first == second


def test_rebuild_replaces_previous_entries(index: SimilarityIndex) -> None:
    count = index.rebuild([("P1", "wireless headphones"), ("P9", "yoga mat")])

    assert count == 2
    assert index.ids == ("P1", "P9")
    with pytest.raises(NotFoundError):
        index.nearest_neighbors("P3", 1)


def test_rebuild_with_repeated_id_keeps_first_position(vectorizer: HashingVectorizer) -> None:
    idx = SimilarityIndex(vectorizer)
    count = idx.rebuild([("A", "red shoes"), ("B", "blue hat"), ("A", "green scarf")])

    assert count == 2
    assert idx.ids == ("A", "B")
    assert np.array_equal(idx.vector("A"), vectorizer.vectorize("green scarf"))


def test_upsert_adds_and_refreshes(index: SimilarityIndex, vectorizer: HashingVectorizer) -> None:
    index.upsert("P6", "wireless audio earbuds bluetooth")
    assert "P6" in index
    assert index.ids[-1] == "P6"

    index.upsert("P2", "running shoes fitness")
    assert np.array_equal(index.vector("P2"), vectorizer.vectorize("running shoes fitness"))
    assert index.ids.index("P2") == 1


def test_remove_drops_entry(index: SimilarityIndex) -> None:
    index.remove("P4")
    assert "P4" not in index
    assert "P4" not in index.nearest_neighbors("P1", 4)
    with pytest.raises(NotFoundError):
        index.remove("P4")


def test_readers_keep_consistent_snapshot(index: SimilarityIndex) -> None:
    snapshot = index._snapshot
    index.rebuild([("X", "something else")])

    # The old snapshot object is untouched by the swap.
    assert snapshot.ids == tuple(pid for pid, _ in CATALOG)
    assert index._snapshot is not snapshot
    assert not snapshot.matrix.flags.writeable
