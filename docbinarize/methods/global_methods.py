"""
Histogram-based Otsu thresholding for document binarization.
This module implements the global, multi-level and tiled (local) variants of
Otsu's method. All three share one threshold search over a 256-bin histogram.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Any, List, NamedTuple, Tuple
import logging

import numpy as np
from scipy import ndimage

from ..core.base import BinarizationAlgorithm, BinarizationResult, threshold_image
from ..core.params import ParameterSchema, ParameterSpec, ParamType

logger = logging.getLogger(__name__)

# Threshold used when a histogram has no positive between-class variance
DEGENERATE_THRESHOLD = 127


class OtsuSearch(NamedTuple):
	"""
	Outcome of an Otsu threshold search.
	Attributes:
		threshold: Bin index; pixels at or below it form class 0
		max_variance: Between-class variance at the threshold (probability weights)
		degenerate: True when no threshold separates two non-empty classes
	"""
	threshold: int
	max_variance: float
	degenerate: bool


def compute_histogram(gray: np.ndarray) -> np.ndarray:
	"""
	256-bin intensity histogram of a uint8 image.
	Args:
		gray: Grayscale image
	Returns:
		int64 array of length 256 summing to the pixel count
	"""
	return np.bincount(gray.ravel(), minlength=256).astype(np.int64)


def _between_class_variance(hists: np.ndarray) -> np.ndarray:
	"""
	Between-class variance of every threshold for a stack of histograms.
	Args:
		hists: (k, n) float histogram counts
	Returns:
		(k, n-1) variances; 0 where a class is empty
	"""
	n = hists.shape[1]
	bins = np.arange(n, dtype=np.float64)
	total = hists.sum(axis=1, keepdims=True)

	# Class 0 weight and intensity mass for every threshold
	w0 = np.cumsum(hists, axis=1)[:, :-1]
	mass = np.cumsum(hists * bins, axis=1)
	mass0 = mass[:, :-1]
	w1 = total - w0
	mass1 = mass[:, -1:] - mass0

	valid = (w0 > 0) & (w1 > 0)
	mu0 = np.divide(mass0, w0, out=np.zeros_like(mass0), where=valid)
	mu1 = np.divide(mass1, w1, out=np.zeros_like(mass1), where=valid)
	safe_total = np.where(total > 0, total, 1.0)
	variance = (w0 / safe_total) * (w1 / safe_total) * (mu0 - mu1) ** 2
	variance[~valid] = 0.0
	return variance


def _flat_run_midpoints(variance: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
	"""First maximum of each row, moved to the midpoint of the flat run it starts."""
	best = np.argmax(variance, axis=1)
	max_variance = variance[np.arange(len(variance)), best]

	positions = np.arange(variance.shape[1])[np.newaxis, :]
	# First position after the maximum where the variance drops
	drop = (variance != max_variance[:, np.newaxis]) & (positions > best[:, np.newaxis])
	run_end = np.where(drop.any(axis=1), np.argmax(drop, axis=1) - 1, variance.shape[1] - 1)
	return (best + run_end) // 2, max_variance


def otsu_threshold(hist: np.ndarray) -> OtsuSearch:
	"""
	Find the threshold maximizing between-class variance.
	Thresholds t in [0, n-1) are scanned, class 0 being bins 0..t. When the
	maximum is reached on a run of consecutive thresholds (classes separated by
	empty bins) the first such run wins and its midpoint is returned.
	Args:
		hist: Histogram counts of length n >= 2
	Returns:
		OtsuSearch with the chosen threshold
	"""
	hist = np.asarray(hist, dtype=np.float64)
	n = len(hist)
	fallback = OtsuSearch(DEGENERATE_THRESHOLD if n == 256 else (n - 1) // 2, 0.0, True)

	if n < 2 or hist.sum() <= 0:
		return fallback

	thresholds, max_variance = _flat_run_midpoints(_between_class_variance(hist[np.newaxis, :]))
	if max_variance[0] <= 0:
		return fallback

	return OtsuSearch(int(thresholds[0]), float(max_variance[0]), False)


def otsu_thresholds(hists: np.ndarray) -> np.ndarray:
	"""
	Otsu threshold of every row of a (k, 256) histogram stack.
	Rows without a separating threshold get DEGENERATE_THRESHOLD.
	Returns:
		int64 array of length k
	"""
	hists = np.asarray(hists, dtype=np.float64)
	thresholds, max_variance = _flat_run_midpoints(_between_class_variance(hists))
	return np.where(max_variance > 0, thresholds, DEGENERATE_THRESHOLD).astype(np.int64)


def is_histogram_bimodal(hist: np.ndarray, sigma: float = 2.0) -> bool:
	"""
	Check if histogram is approximately bimodal.
	Args:
		hist: Histogram counts
		sigma: Gaussian smoothing applied before peak detection
	Returns:
		True if the smoothed histogram has at least two significant peaks
	"""
	hist_smooth = ndimage.gaussian_filter1d(np.asarray(hist, dtype=np.float64), sigma=sigma)

	inner = hist_smooth[1:-1]
	is_peak = (inner > hist_smooth[:-2]) & (inner > hist_smooth[2:])
	# Significant peak: above 10% of the highest bin
	is_peak &= inner > hist_smooth.max() * 0.1

	return int(np.count_nonzero(is_peak)) >= 2


@dataclass(frozen=True)
class OtsuParams:
	pass


@dataclass(frozen=True)
class MultiOtsuParams:
	levels: int = 2


@dataclass(frozen=True)
class LocalOtsuParams:
	window_size: int = 15
	overlap: float = 0.5
	interpolation: bool = True


class OtsuThreshold(BinarizationAlgorithm):
	"""
	Otsu's automatic thresholding method.
	Automatically determines optimal threshold by maximizing inter-class
	variance. Works best for bimodal histograms with clear separation between
	foreground and background.
	Best for: Clean scanned documents with good contrast.
	Example:
		>>> method = OtsuThreshold()
		>>> result = method.binarize(image)
	"""

	category = "histogram"

	def __init__(self):
		super().__init__(
			name="otsu",
			description="Otsu's automatic global threshold selection"
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(OtsuParams, [])

	def _binarize(self, gray: np.ndarray, params) -> BinarizationResult:
		hist = compute_histogram(gray)
		search = otsu_threshold(hist)
		if search.degenerate:
			logger.debug(f"otsu: histogram has a single populated class, using {search.threshold}")

		binary = threshold_image(gray, search.threshold)

		return BinarizationResult(
			binary_image=binary,
			method=self.name,
			parameters=asdict(params),
			threshold=float(search.threshold),
			metadata={
				'max_variance': search.max_variance,
				'degenerate': search.degenerate,
				'histogram_bimodal': is_histogram_bimodal(hist)
			}
		)


class MultiOtsuThreshold(BinarizationAlgorithm):
	"""
	Multi-level Otsu thresholding.
	With three levels a second Otsu search runs on the histogram tail above
	the global threshold, and the image is quantized to 0, 127 and 255.
	Example:
		>>> result = MultiOtsuThreshold().binarize(image, levels=3)
		>>> t1, t2 = result.metadata["thresholds"]
	"""

	category = "histogram"

	def __init__(self):
		super().__init__(
			name="otsu_multi",
			description="Multi-level Otsu quantization into evenly spaced gray levels"
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(MultiOtsuParams, [
			ParameterSpec(
				'levels', ParamType.INT, 2,
				description="Number of output gray levels",
				min=2, max=3
			),
		])

	def compute_thresholds(self, hist: np.ndarray, levels: int) -> List[int]:
		"""
		Thresholds splitting the histogram into `levels` classes.
		Args:
			hist: 256-bin histogram
			levels: 2 or 3
		Returns:
			Sorted list of levels - 1 thresholds
		"""
		t1 = otsu_threshold(hist).threshold
		if levels == 2:
			return [t1]

		tail = otsu_threshold(hist[t1:])
		if tail.degenerate:
			logger.debug(f"otsu_multi: tail above {t1} is degenerate, collapsing middle class")
			t2 = t1
		else:
			t2 = tail.threshold + t1
		return sorted([t1, t2])

	def _binarize(self, gray: np.ndarray, params) -> BinarizationResult:
		levels = params.levels
		thresholds = self.compute_thresholds(compute_histogram(gray), levels)

		values = tuple(level * 255 // (levels - 1) for level in range(levels))
		# Class index = number of thresholds strictly below the intensity
		class_index = np.searchsorted(np.asarray(thresholds), gray, side='left')
		output = np.asarray(values, dtype=np.uint8)[class_index]

		return BinarizationResult(
			binary_image=output,
			method=self.name,
			parameters=asdict(params),
			threshold=float(thresholds[0]),
			metadata={'thresholds': thresholds, 'output_levels': list(values)},
			levels=values
		)


class LocalOtsuThreshold(BinarizationAlgorithm):
	"""
	Tiled (local) Otsu thresholding.
	Runs Otsu on square windows laid out every `step` pixels, where
	step = max(1, int(window_size * (1 - overlap))). Without interpolation each
	window is thresholded directly in scan order, so later windows overwrite
	the overlap. With interpolation the window thresholds form a grid with one
	node per window origin and each pixel's threshold is bilinearly
	interpolated between its four nearest nodes.
	Best for: Documents with uneven illumination across the page.
	"""

	category = "histogram"

	def __init__(self):
		super().__init__(
			name="otsu_local",
			description="Local Otsu on overlapping windows with optional bilinear interpolation"
		)

	def parameter_schema(self) -> ParameterSchema:
		return ParameterSchema(LocalOtsuParams, [
			ParameterSpec(
				'window_size', ParamType.INT, 15,
				description="Side of the square Otsu window",
				min=5, max=101
			),
			ParameterSpec(
				'overlap', ParamType.FLOAT, 0.5,
				description="Fraction of the window shared with the next window",
				min=0.0, max=0.9
			),
			ParameterSpec(
				'interpolation', ParamType.BOOL, True,
				description="Bilinearly interpolate window thresholds"
			),
		])

	def threshold_grid(self, gray: np.ndarray, window_size: int, step: int) -> np.ndarray:
		"""
		Otsu threshold of every window, indexed by window grid position.
		Args:
			gray: Grayscale image
			window_size: Odd window side
			step: Distance between window origins
		Returns:
			ThresholdGrid of shape ((H-1)//step + 1, (W-1)//step + 1)
		"""
		height, width = gray.shape
		origins_x = np.arange(0, width, step)
		ends_x = np.minimum(origins_x + window_size, width)
		columns = np.arange(width, dtype=np.intp)

		grid = np.empty(((height - 1) // step + 1, len(origins_x)), dtype=np.float64)
		for row, y in enumerate(range(0, height, step)):
			band = gray[y:y + window_size]
			# Per-column histograms of the band, summed cumulatively along x
			flat = columns[np.newaxis, :] * 256 + band.astype(np.intp)
			column_hists = np.bincount(flat.ravel(), minlength=width * 256).reshape(width, 256)
			cumulative = np.zeros((width + 1, 256), dtype=np.int64)
			np.cumsum(column_hists, axis=0, out=cumulative[1:])

			window_hists = cumulative[ends_x] - cumulative[origins_x]
			grid[row] = otsu_thresholds(window_hists)
		return grid

	@staticmethod
	def threshold_tiles(grid: np.ndarray, shape: Tuple[int, int], step: int) -> np.ndarray:
		"""
		Per-pixel threshold map of non-interpolated mode.
		Windows are applied in scan order, so the last window covering a pixel
		is the one whose origin is the grid node at (y // step, x // step).
		"""
		rows = np.arange(shape[0]) // step
		cols = np.arange(shape[1]) // step
		return grid[np.ix_(rows, cols)]

	@staticmethod
	def interpolate_grid(grid: np.ndarray, shape: Tuple[int, int], step: int) -> np.ndarray:
		"""
		Bilinear per-pixel threshold map from a threshold grid.
		Args:
			grid: ThresholdGrid
			shape: (H, W) of the output
			step: Pixel distance between grid nodes
		Returns:
			Float threshold map of the given shape
		"""
		def axis(length: int, nodes: int):
			pos = np.arange(length, dtype=np.float64) / step
			lo = np.floor(pos).astype(np.intp)
			hi = lo + 1
			# Clamp at the last node
			past = hi >= nodes
			hi[past] = nodes - 1
			lo[past] = hi[past]
			return lo, hi, pos - lo

		y1, y2, wy = axis(shape[0], grid.shape[0])
		x1, x2, wx = axis(shape[1], grid.shape[1])
		wx = wx[np.newaxis, :]
		wy = wy[:, np.newaxis]

		top = grid[np.ix_(y1, x1)] * (1.0 - wx) + grid[np.ix_(y1, x2)] * wx
		bottom = grid[np.ix_(y2, x1)] * (1.0 - wx) + grid[np.ix_(y2, x2)] * wx
		return top * (1.0 - wy) + bottom * wy

	def _binarize(self, gray: np.ndarray, params) -> BinarizationResult:
		window_size = params.window_size
		# Ensure window_size is odd
		if window_size % 2 == 0:
			window_size += 1
		step = max(1, int(window_size * (1.0 - params.overlap)))

		metadata: Dict[str, Any] = {'window_size': window_size, 'step': step}

		grid = self.threshold_grid(gray, window_size, step)
		if params.interpolation:
			threshold_map = self.interpolate_grid(grid, gray.shape, step)
			metadata['grid_shape'] = grid.shape
		else:
			threshold_map = self.threshold_tiles(grid, gray.shape, step)
		binary = threshold_image(gray, threshold_map)
		mean_threshold = float(np.mean(grid))

		metadata['interpolation'] = params.interpolation
		metadata['mean_threshold'] = mean_threshold
		logger.debug(f"otsu_local: window={window_size} step={step} mean threshold={mean_threshold:.1f}")

		return BinarizationResult(
			binary_image=binary,
			method=self.name,
			parameters=asdict(params),
			threshold=mean_threshold,
			metadata=metadata
		)
