"""Post-processing utilities for binarized images."""
from .morphology import MorphologicalOperations

__all__ = ["MorphologicalOperations"]
