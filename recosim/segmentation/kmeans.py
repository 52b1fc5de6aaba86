"""Standardize-then-cluster customer segmentation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from recosim.errors import InvalidArgumentError
from recosim.segmentation.features import CustomerFeature

logger = logging.getLogger(__name__)

SEGMENT_PREFIX = "segment_"

# Columns whose spread is below this are treated as constant.
_ZERO_STD = 1e-12


def segment_label(index: int) -> str:
    return f"{SEGMENT_PREFIX}{index}"


def standardize(matrix: np.ndarray) -> np.ndarray:
    """Scale each column to zero mean and unit (population) standard deviation.

    A constant column maps to 0 for every row.
    """
    data = np.asarray(matrix, dtype=np.float64)
    if data.ndim != 2:
        raise InvalidArgumentError(f"Feature matrix must be 2-D; got shape {data.shape}")
    if data.shape[0] == 0:
        return data.copy()

    means = data.mean(axis=0)
    stds = data.std(axis=0)
    constant = stds < _ZERO_STD
    scaled = (data - means) / np.where(constant, 1.0, stds)
    scaled[:, constant] = 0.0
    return scaled


@dataclass(slots=True)
class KMeansResult:
    """Raw cluster assignment produced by ``kmeans``."""

    assignments: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool


def kmeans(
    points: np.ndarray,
    k: int,
    *,
    rng: np.random.Generator,
    max_iterations: int = 100,
) -> KMeansResult:
    """Lloyd's algorithm with centroids sampled from ``points``.

    Initial centroids are ``k`` rows drawn without replacement, or with
    replacement when ``k`` exceeds the number of rows. Each pass assigns
    every point to its nearest centroid by squared Euclidean distance (the
    lowest centroid index wins ties) and moves each centroid to the mean of
    its members; a centroid without members stays put. The loop stops once
    no assignment changes or after ``max_iterations`` passes.
    """
    if k <= 0:
        raise InvalidArgumentError(f"k must be positive; got {k}")
    if max_iterations <= 0:
        raise InvalidArgumentError(f"max_iterations must be positive; got {max_iterations}")

    data = np.asarray(points, dtype=np.float64)
    n = data.shape[0]
    if n == 0:
        raise InvalidArgumentError("Cannot cluster an empty feature batch")

    seeds = rng.choice(n, size=k, replace=k > n)
    centroids = data[seeds].copy()
    assignments = np.full(n, -1, dtype=np.int64)

    iterations = 0
    converged = False
    while iterations < max_iterations:
        iterations += 1
        distances = ((data[:, None, :] - centroids[None, :, :]) ** 2).sum(axis=2)
        updated = distances.argmin(axis=1)
        if np.array_equal(updated, assignments):
            converged = True
            break
        assignments = updated

        for j in range(k):
            members = data[assignments == j]
            if len(members):
                centroids[j] = members.mean(axis=0)

    return KMeansResult(
        assignments=assignments,
        centroids=centroids,
        iterations=iterations,
        converged=converged,
    )


@dataclass(slots=True)
class SegmentationReport:
    """Summary of the most recent segmentation run."""

    customers: int
    k: int
    iterations: int
    converged: bool
    segment_sizes: dict[str, int] = field(default_factory=dict)


class SegmentationEngine:
    """Cluster customer features into ``segment_<i>`` labels.

    The random generator is re-seeded from ``seed`` on every run, so repeated
    runs over the same batch produce the same labels.
    """

    def __init__(self, *, seed: int | None = 0, max_iterations: int = 100) -> None:
        if max_iterations <= 0:
            raise InvalidArgumentError(f"max_iterations must be positive; got {max_iterations}")
        self._seed = seed
        self._max_iterations = max_iterations
        self.last_run: SegmentationReport | None = None

    def run(self, features: Sequence[CustomerFeature], k: int) -> dict[str, str]:
        """Return a ``customer_id -> segment label`` mapping covering every input.

        Raises:
            InvalidArgumentError: If ``k <= 0``, the batch is empty, or a
                customer id appears more than once
        """
        if k <= 0:
            raise InvalidArgumentError(f"k must be positive; got {k}")
        if not features:
            raise InvalidArgumentError("Cannot segment an empty feature batch")

        customer_ids = [feature.customer_id for feature in features]
        if len(set(customer_ids)) != len(customer_ids):
            raise InvalidArgumentError("Feature batch contains duplicate customer ids")

        matrix = standardize(np.array([feature.as_vector() for feature in features]))
        result = kmeans(
            matrix,
            k,
            rng=np.random.default_rng(self._seed),
            max_iterations=self._max_iterations,
        )

        # Clusters are numbered by first appearance in input order.
        cluster_labels: dict[int, str] = {}
        assignment: dict[str, str] = {}
        sizes: dict[str, int] = {}
        for customer_id, cluster in zip(customer_ids, result.assignments, strict=True):
            label = cluster_labels.setdefault(int(cluster), segment_label(len(cluster_labels)))
            assignment[customer_id] = label
            sizes[label] = sizes.get(label, 0) + 1

        self.last_run = SegmentationReport(
            customers=len(customer_ids),
            k=k,
            iterations=result.iterations,
            converged=result.converged,
            segment_sizes=sizes,
        )
        if not result.converged:
            logger.info("k-means stopped at iteration cap (%d)", self._max_iterations)
        logger.info(
            "Segmented %d customers into %d segments in %d iterations",
            len(customer_ids),
            len(sizes),
            result.iterations,
        )
        return assignment
