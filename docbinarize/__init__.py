"""Top-level package for document binarization.

Expose the catalog and the pipeline for convenience.
"""
from .core import *
from .methods import AlgorithmCatalog, create_default_catalog
from .preprocessing import GuidedFilter

__version__ = "0.1.0"

__all__ = [
	"BinarizationPipeline",
	"PipelineConfig",
	"BinarizationAlgorithm",
	"BinarizationResult",
	"ValidationError",
	"EmptyInputError",
	"DimensionMismatchError",
	"AlgorithmCatalog",
	"create_default_catalog",
	"GuidedFilter",
]
