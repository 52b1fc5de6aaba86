"""Customer feature extraction and k-means segmentation."""

from recosim.segmentation.features import CustomerFeature, CustomerFeatureExtractor
from recosim.segmentation.kmeans import SegmentationEngine, SegmentationReport

__all__ = [
    "CustomerFeature",
    "CustomerFeatureExtractor",
    "SegmentationEngine",
    "SegmentationReport",
]
