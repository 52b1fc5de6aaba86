"""Vectorizer port interface for product feature vectors."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class VectorizerPort(Protocol):
    """Port interface for text to fixed-length vector conversion.

    Implementations must be deterministic: the same text always yields the
    same vector, and every component is finite. Empty text maps to a defined
    vector rather than an error.
    """

    @property
    def dimensions(self) -> int:
        """Length of every vector produced."""
        ...

    def vectorize(self, text: str) -> np.ndarray:
        """Return a 1-D float vector of length ``dimensions`` for ``text``."""
        ...
