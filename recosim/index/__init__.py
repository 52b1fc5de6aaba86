"""Product similarity index."""

from recosim.index.similarity import SimilarityIndex, cosine_similarity

__all__ = ["SimilarityIndex", "cosine_similarity"]
