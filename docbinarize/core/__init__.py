"""Core package: algorithm base classes, parameters, statistics, pipeline and configuration."""
from .base import BinarizationAlgorithm, BinarizationResult, FOREGROUND, BACKGROUND
from .exceptions import BinarizationError, ValidationError, EmptyInputError, DimensionMismatchError
from .integral import IntegralStatsEngine, IntegralImage
from .params import ParameterSpec, ParameterSchema, ParamType
from .config import PipelineConfig, PostProcessConfig, ConfigLoader, get_default_config
from .pipeline import BinarizationPipeline

__all__ = [
	"BinarizationAlgorithm",
	"BinarizationResult",
	"FOREGROUND",
	"BACKGROUND",
	"BinarizationError",
	"ValidationError",
	"EmptyInputError",
	"DimensionMismatchError",
	"IntegralStatsEngine",
	"IntegralImage",
	"ParameterSpec",
	"ParameterSchema",
	"ParamType",
	"PipelineConfig",
	"PostProcessConfig",
	"ConfigLoader",
	"get_default_config",
	"BinarizationPipeline",
]
