"""In-memory cosine similarity index over product feature vectors.

The index publishes immutable snapshots. ``rebuild``, ``upsert`` and
``remove`` construct a complete new snapshot and swap a single reference, so
readers never observe a partially built vector set.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from recosim.errors import InvalidArgumentError, NotFoundError

if TYPE_CHECKING:
    from recosim.app.ports.vectorizer import VectorizerPort

logger = logging.getLogger(__name__)


def cosine_similarity(u: Sequence[float] | np.ndarray, v: Sequence[float] | np.ndarray) -> float:
    """Return dot(u, v) / (|u| * |v|), or 0.0 when either norm is zero."""
    a = np.asarray(u, dtype=np.float64)
    b = np.asarray(v, dtype=np.float64)
    if a.shape != b.shape:
        raise InvalidArgumentError(f"Vector shapes differ: {a.shape} vs {b.shape}")
    denom = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    return float(np.dot(a, b) / denom)


@dataclass(frozen=True, slots=True)
class _Snapshot:
    """Immutable vector set; row ``i`` of ``matrix`` belongs to ``ids[i]``."""

    ids: tuple[str, ...]
    matrix: np.ndarray  # shape: (n, dim)
    norms: np.ndarray  # shape: (n,)
    positions: dict[str, int] = field(default_factory=dict)

    @classmethod
    def build(cls, ids: Sequence[str], vectors: Sequence[np.ndarray], dim: int) -> _Snapshot:
        if vectors:
            matrix = np.vstack(vectors).astype(np.float64, copy=False)
        else:
            matrix = np.zeros((0, dim), dtype=np.float64)
        matrix.setflags(write=False)
        norms = np.linalg.norm(matrix, axis=1)
        norms.setflags(write=False)
        positions = {product_id: i for i, product_id in enumerate(ids)}
        return cls(ids=tuple(ids), matrix=matrix, norms=norms, positions=positions)


class SimilarityIndex:
    """Holds every product vector and answers nearest-neighbour queries."""

    def __init__(self, vectorizer: VectorizerPort) -> None:
        self._vectorizer = vectorizer
        self._dim = int(vectorizer.dimensions)
        self._write_lock = threading.Lock()
        self._snapshot = _Snapshot.build([], [], self._dim)

    @property
    def dimensions(self) -> int:
        return self._dim

    @property
    def ids(self) -> tuple[str, ...]:
        """Indexed product ids in insertion order."""
        return self._snapshot.ids

    def __len__(self) -> int:
        return len(self._snapshot.ids)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._snapshot.positions

    def _vectorize(self, text: str) -> np.ndarray:
        vector = np.asarray(self._vectorizer.vectorize(text), dtype=np.float64)
        if vector.shape != (self._dim,):
            raise ValueError(f"Vectorizer returned shape {vector.shape}; expected ({self._dim},)")
        return vector

    def rebuild(self, products: Iterable[tuple[str, str]]) -> int:
        """Replace the whole vector set with ``products`` ``(id, text)`` pairs.

        A repeated id keeps the position of its first occurrence and the
        vector of its last. Returns the number of indexed products.
        """
        ids: list[str] = []
        vectors: dict[str, np.ndarray] = {}
        for product_id, text in products:
            if product_id not in vectors:
                ids.append(product_id)
            vectors[product_id] = self._vectorize(text)

        snapshot = _Snapshot.build(ids, [vectors[i] for i in ids], self._dim)
        with self._write_lock:
            self._snapshot = snapshot
        logger.info("Similarity index rebuilt with %d products (dim=%d)", len(ids), self._dim)
        return len(ids)

    def upsert(self, product_id: str, text: str) -> None:
        """Insert or refresh a single product's vector."""
        vector = self._vectorize(text)
        with self._write_lock:
            current = self._snapshot
            ids = list(current.ids)
            vectors = list(current.matrix)
            position = current.positions.get(product_id)
            if position is None:
                ids.append(product_id)
                vectors.append(vector)
            else:
                vectors[position] = vector
            self._snapshot = _Snapshot.build(ids, vectors, self._dim)

    def remove(self, product_id: str) -> None:
        """Drop a product from the index."""
        with self._write_lock:
            current = self._snapshot
            position = current.positions.get(product_id)
            if position is None:
                raise NotFoundError(f"Product not in similarity index: {product_id}")
            ids = [pid for i, pid in enumerate(current.ids) if i != position]
            vectors = [row for i, row in enumerate(current.matrix) if i != position]
            self._snapshot = _Snapshot.build(ids, vectors, self._dim)

    def vector(self, product_id: str) -> np.ndarray:
        """Return a copy of the stored vector for ``product_id``."""
        snapshot = self._snapshot
        position = snapshot.positions.get(product_id)
        if position is None:
            raise NotFoundError(f"Product not in similarity index: {product_id}")
        return snapshot.matrix[position].copy()

    def similarity(self, first_id: str, second_id: str) -> float:
        """Cosine similarity between two indexed products."""
        return cosine_similarity(self.vector(first_id), self.vector(second_id))

    def nearest_neighbors(self, product_id: str, top_n: int) -> list[str]:
        """Return up to ``top_n`` ids by descending cosine similarity to ``product_id``.

        The query product is never part of its own result. Equal scores keep
        index insertion order.

        Raises:
            InvalidArgumentError: If ``top_n`` is not positive
            NotFoundError: If ``product_id`` is not indexed
        """
        if top_n <= 0:
            raise InvalidArgumentError(f"top_n must be positive; got {top_n}")

        snapshot = self._snapshot
        position = snapshot.positions.get(product_id)
        if position is None:
            raise NotFoundError(f"Product not in similarity index: {product_id}")

        query = snapshot.matrix[position]
        dots = snapshot.matrix @ query
        denom = snapshot.norms * snapshot.norms[position]
        scores = np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0.0)

        order = np.argsort(-scores, kind="stable")
        neighbours: list[str] = []
        for idx in order:
            if idx == position:
                continue
            neighbours.append(snapshot.ids[int(idx)])
            if len(neighbours) == top_n:
                break
        return neighbours
