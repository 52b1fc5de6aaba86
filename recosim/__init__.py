"""Recosim - Offline content-similarity recommender with customer segmentation.

A small e-commerce toolkit: product similarity search, k-means customer
segments and a personalized/segment/popularity recommendation waterfall.
"""

__version__ = "0.1.0"
__author__ = "Recosim Contributors"

from recosim.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
