"""Binarization methods package.

Contains the histogram (Otsu), local adaptive and 2D Otsu algorithm
implementations and the algorithm catalog.
"""
from .registry import AlgorithmCatalog, create_default_catalog
from .global_methods import OtsuThreshold, MultiOtsuThreshold, LocalOtsuThreshold
from .adaptive_methods import NiblackThreshold, SauvolaThreshold, WolfJolionThreshold, NickThreshold
from .advanced_methods import TwoDOtsuThreshold

__all__ = [
	"AlgorithmCatalog",
	"create_default_catalog",
	"OtsuThreshold",
	"MultiOtsuThreshold",
	"LocalOtsuThreshold",
	"NiblackThreshold",
	"SauvolaThreshold",
	"WolfJolionThreshold",
	"NickThreshold",
	"TwoDOtsuThreshold",
]
