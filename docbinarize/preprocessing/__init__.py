"""Preprocessing filters applied before thresholding."""
from .guided_filter import GuidedFilter, guided_filter

__all__ = ["GuidedFilter", "guided_filter"]
