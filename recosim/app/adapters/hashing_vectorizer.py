"""Salted feature-hashing vectorizer implementing VectorizerPort.

Algorithm:
    1. Lowercase the text and split it into word tokens ``[a-z0-9]+``.
    2. Emit each token (weight 1.0) and each character trigram of the token
       padded as ``#token#`` (weight 0.5).
    3. Hash every feature with BLAKE2b keyed by the salt. The digest modulo
       ``dimensions`` picks the bucket; the top digest bit picks the sign.
    4. L2-normalize the accumulated vector unless it is all zeros.

Empty or token-free text yields the all-zero vector.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

import numpy as np

from recosim.app.ports.vectorizer import VectorizerPort
from recosim.utils.hashing import salted_digest64

_TOKEN_RE = re.compile(r"[a-z0-9]+")

TOKEN_WEIGHT = 1.0
TRIGRAM_WEIGHT = 0.5


def iter_features(text: str) -> Iterator[tuple[str, float]]:
    """Yield ``(feature, weight)`` pairs for ``text``."""
    for token in _TOKEN_RE.findall(text.lower()):
        yield f"w:{token}", TOKEN_WEIGHT
        padded = f"#{token}#"
        for i in range(len(padded) - 2):
            yield f"c:{padded[i : i + 3]}", TRIGRAM_WEIGHT


class HashingVectorizer(VectorizerPort):
    """Deterministic token/trigram hashing into a fixed number of buckets."""

    def __init__(self, *, dimensions: int = 128, salt: str = "recosim-v1") -> None:
        if dimensions <= 0:
            raise ValueError(f"dimensions must be positive; got {dimensions}")
        if not salt:
            raise ValueError("salt must be a non-empty string")
        self._dim = int(dimensions)
        self._salt = salt

    @property
    def dimensions(self) -> int:
        return self._dim

    @property
    def salt(self) -> str:
        return self._salt

    def vectorize(self, text: str) -> np.ndarray:
        vector = np.zeros(self._dim, dtype=np.float64)
        for feature, weight in iter_features(text or ""):
            digest = salted_digest64(feature, self._salt)
            sign = -1.0 if digest >> 63 else 1.0
            vector[digest % self._dim] += sign * weight

        norm = float(np.linalg.norm(vector))
        if norm > 0.0:
            vector /= norm
        return vector
