"""
Adaptive (local) thresholding methods for document binarization.
These methods compute a different threshold for each pixel from the mean and
standard deviation of its neighbourhood, making them robust to non-uniform
illumination. All four share one IntegralStatsEngine, so every window query
costs O(1) regardless of the window size.
"""

from abc import abstractmethod
from dataclasses import asdict, dataclass
from typing import Dict, Any, Optional
import logging

import numpy as np

from ..core.base import BinarizationAlgorithm, BinarizationResult, threshold_image
from ..core.integral import IntegralImage, IntegralStatsEngine, LocalStatistics
from ..core.params import ParameterSchema, ParameterSpec, ParamType

logger = logging.getLogger(__name__)


def window_size_spec(default: int = 15) -> ParameterSpec:
	return ParameterSpec(
		'window_size', ParamType.INT, default,
		description="Local window size for statistics calculation",
		min=3, max=101
	)


@dataclass(frozen=True)
class NiblackParams:
	window_size: int = 15
	k: float = -0.2


@dataclass(frozen=True)
class SauvolaParams:
	window_size: int = 15
	k: float = 0.5
	R: float = 128.0


@dataclass(frozen=True)
class WolfJolionParams:
	window_size: int = 15
	k: float = 0.5


@dataclass(frozen=True)
class NickParams:
	window_size: int = 15
	k: float = -0.2


class LocalAdaptiveThreshold(BinarizationAlgorithm):
	"""
	Shared driver for window-statistics thresholding.
	Forces the window size odd, computes clamped-window statistics for every
	pixel through the injected IntegralStatsEngine, asks the subclass for the
	per-pixel threshold map and classifies `intensity <= T` as foreground.
	"""

	category = "adaptive"

	def __init__(self, name: str, description: str = "", engine: Optional[IntegralStatsEngine] = None):
		super().__init__(name=name, description=description)
		self.engine = engine or IntegralStatsEngine()

	@abstractmethod
	def compute_threshold(self, stats: LocalStatistics, integral: IntegralImage, params) -> np.ndarray:
		"""
		Per-pixel threshold map.
		Args:
			stats: Local mean/variance/stddev maps
			integral: Integral tables, for algorithms needing global statistics
			params: Typed parameters
		Returns:
			Float threshold array of the image shape
		"""
		pass

	def formula_metadata(self, params, integral: IntegralImage) -> Dict[str, Any]:
		return {'k': params.k}

	def _binarize(self, gray: np.ndarray, params) -> BinarizationResult:
		window_size = params.window_size
		# Ensure window_size is odd
		if window_size % 2 == 0:
			window_size += 1

		integral = self.engine.build(gray)
		stats = integral.local_statistics(window_size // 2)
		threshold = self.compute_threshold(stats, integral, params)

		binary = threshold_image(gray, threshold)

		metadata = {
			'window_size': window_size,
			'mean_threshold': float(np.mean(threshold)),
			'std_threshold': float(np.std(threshold))
		}
		metadata.update(self.formula_metadata(params, integral))

		return BinarizationResult(
			binary_image=binary,
			method=self.name,
			parameters=asdict(params),
			threshold=float(np.mean(threshold)),
			metadata=metadata
		)


class NiblackThreshold(LocalAdaptiveThreshold):
	"""
	Niblack's local thresholding method.
	Formula: T(x,y) = m(x,y) + k × σ(x,y)
	where m = local mean, σ = local standard deviation
	Best for: High-quality documents with consistent text.
	Limitation: Can produce noisy backgrounds in low-contrast regions.
	Example:
		>>> method = NiblackThreshold()
		>>> result = method.binarize(image, window_size=15, k=-0.2)
	"""

	def __init__(self, engine: Optional[IntegralStatsEngine] = None):
		super().__init__(
			name="niblack",
			description="Niblack local adaptive thresholding with local mean and standard deviation",
			engine=engine
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(NiblackParams, [
			window_size_spec(),
			ParameterSpec(
				'k', ParamType.FLOAT, -0.2,
				description="Niblack parameter (negative values preserve more text)",
				min=-1.0, max=1.0
			),
		])

	def compute_threshold(self, stats, integral, params):
		return stats.mean + params.k * stats.stddev


class SauvolaThreshold(LocalAdaptiveThreshold):
	"""
	Sauvola's adaptive thresholding method.
	Improvement over Niblack that scales the deviation term by the dynamic
	range R, damping the threshold in flat background regions.
	Formula: T(x,y) = m(x,y) × [1 + k × (σ(x,y)/R - 1)]
	Best for: Most document types, especially stained backgrounds.
	"""

	def __init__(self, engine: Optional[IntegralStatsEngine] = None):
		super().__init__(
			name="sauvola",
			description="Sauvola local adaptive thresholding with dynamic range normalization",
			engine=engine
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(SauvolaParams, [
			window_size_spec(),
			ParameterSpec(
				'k', ParamType.FLOAT, 0.5,
				description="Sauvola parameter controlling threshold sensitivity",
				min=0.1, max=1.0
			),
			ParameterSpec(
				'R', ParamType.FLOAT, 128.0,
				description="Dynamic range of standard deviation",
				min=50.0, max=255.0
			),
		])

	def compute_threshold(self, stats, integral, params):
		return stats.mean * (1.0 + params.k * (stats.stddev / params.R - 1.0))

	def formula_metadata(self, params, integral):
		return {'k': params.k, 'R': params.R}


class WolfJolionThreshold(LocalAdaptiveThreshold):
	"""
	Wolf-Jolion adaptive thresholding (simplified variant).
	Uses the local box statistics together with the global image mean rather
	than the published normalized-contrast term. Downstream results depend on
	this exact formula.
	Formula: T(x,y) = m(x,y) - k × σ(x,y) × (1 - m(x,y)/M)
	where M = global image mean
	Best for: Degraded documents with low contrast regions.
	"""

	def __init__(self, engine: Optional[IntegralStatsEngine] = None):
		super().__init__(
			name="wolf_jolion",
			description="Wolf-Jolion adaptive thresholding using local and global statistics",
			engine=engine
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(WolfJolionParams, [
			window_size_spec(),
			ParameterSpec(
				'k', ParamType.FLOAT, 0.5,
				description="Weight of the contrast term",
				min=0.1, max=1.0
			),
		])

	def compute_threshold(self, stats, integral, params):
		global_mean, _ = integral.global_statistics()
		if global_mean <= 0:
			# All-black image: the contrast term is undefined
			logger.debug("wolf_jolion: global mean is zero, using local mean as threshold")
			return stats.mean.copy()
		return stats.mean - params.k * stats.stddev * (1.0 - stats.mean / global_mean)

	def formula_metadata(self, params, integral):
		global_mean, global_std = integral.global_statistics()
		return {'k': params.k, 'global_mean': global_mean, 'global_std': global_std}


class NickThreshold(LocalAdaptiveThreshold):
	"""
	NICK adaptive thresholding.
	Shifts the threshold by the root of the local second moment, which keeps
	light page backgrounds clean where Niblack produces speckle.
	Formula: T(x,y) = m(x,y) + k × sqrt(σ²(x,y) + m(x,y)²)
	"""

	def __init__(self, engine: Optional[IntegralStatsEngine] = None):
		super().__init__(
			name="nick",
			description="NICK adaptive thresholding for low-contrast degraded documents",
			engine=engine
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(NickParams, [
			window_size_spec(),
			ParameterSpec(
				'k', ParamType.FLOAT, -0.2,
				description="NICK parameter (typically between -0.2 and -0.1)",
				min=-1.0, max=1.0
			),
		])

	def compute_threshold(self, stats, integral, params):
		return stats.mean + params.k * np.sqrt(stats.variance + stats.mean ** 2)
