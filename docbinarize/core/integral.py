"""
Integral-image statistics engine.
Builds prefix-sum tables of intensities and squared intensities so that the
mean and standard deviation of any axis-aligned window cost O(1). The local
adaptive thresholding methods share one engine instead of each recomputing
window statistics.
"""

from dataclasses import dataclass
from typing import Tuple
import logging

import numpy as np
import cv2

from .exceptions import EmptyInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowBounds:
	"""
	Inclusive window coordinates clamped to the image.
	Attributes:
		x1, y1: Top-left corner
		x2, y2: Bottom-right corner (inclusive)
	"""
	x1: int
	y1: int
	x2: int
	y2: int

	@property
	def area(self) -> int:
		return (self.x2 - self.x1 + 1) * (self.y2 - self.y1 + 1)


@dataclass(frozen=True)
class LocalStatistics:
	"""Per-pixel window statistics, each an (H, W) float64 array."""
	mean: np.ndarray
	variance: np.ndarray
	stddev: np.ndarray


@dataclass(frozen=True)
class IntegralImage:
	"""
	Sum and squared-sum tables of shape (H+1, W+1).
	Row 0 and column 0 are zero so that table[y, x] holds the sum over
	image[:y, :x].
	"""
	sum: np.ndarray
	sq_sum: np.ndarray
	height: int
	width: int

	def window_bounds(self, x: int, y: int, half_window: int) -> WindowBounds:
		"""
		Clamp the square window centred on (x, y) to the image.
		Args:
			x, y: Pixel coordinates
			half_window: Half of the (odd) window size
		Returns:
			WindowBounds with area >= 1
		"""
		return WindowBounds(
			x1=max(0, x - half_window),
			y1=max(0, y - half_window),
			x2=min(self.width - 1, x + half_window),
			y2=min(self.height - 1, y + half_window),
		)

	def query(self, x1: int, y1: int, x2: int, y2: int) -> Tuple[float, float]:
		"""
		Mean and standard deviation of an inclusive window.
		Coordinates outside the image are clamped.
		Args:
			x1, y1: Top-left corner
			x2, y2: Bottom-right corner (inclusive)
		Returns:
			(mean, stddev)
		"""
		x1 = min(max(0, x1), self.width - 1)
		x2 = min(max(0, x2), self.width - 1)
		y1 = min(max(0, y1), self.height - 1)
		y2 = min(max(0, y2), self.height - 1)
		if x2 < x1:
			x1, x2 = x2, x1
		if y2 < y1:
			y1, y2 = y2, y1

		area = float((x2 - x1 + 1) * (y2 - y1 + 1))
		total = _box_sum(self.sum, x1, y1, x2, y2)
		total_sq = _box_sum(self.sq_sum, x1, y1, x2, y2)

		mean = total / area
		variance = max(total_sq / area - mean * mean, 0.0)
		return float(mean), float(np.sqrt(variance))

	def query_bounds(self, bounds: WindowBounds) -> Tuple[float, float]:
		return self.query(bounds.x1, bounds.y1, bounds.x2, bounds.y2)

	def global_statistics(self) -> Tuple[float, float]:
		"""Mean and standard deviation of the whole image."""
		return self.query(0, 0, self.width - 1, self.height - 1)

	def local_statistics(self, half_window: int) -> LocalStatistics:
		"""
		Window statistics for every pixel at once.
		Each pixel gets the clamped square window of side 2*half_window + 1;
		border windows shrink instead of being padded.
		Args:
			half_window: Half of the (odd) window size
		Returns:
			LocalStatistics with mean, variance (clamped at 0) and stddev maps
		"""
		xs = np.arange(self.width)
		ys = np.arange(self.height)

		x1 = np.maximum(xs - half_window, 0)
		x2 = np.minimum(xs + half_window, self.width - 1) + 1
		y1 = np.maximum(ys - half_window, 0)
		y2 = np.minimum(ys + half_window, self.height - 1) + 1

		area = np.outer(y2 - y1, x2 - x1).astype(np.float64)
		total = _box_sums(self.sum, x1, y1, x2, y2)
		total_sq = _box_sums(self.sq_sum, x1, y1, x2, y2)

		mean = total / area
		variance = np.maximum(total_sq / area - mean ** 2, 0.0)
		return LocalStatistics(mean=mean, variance=variance, stddev=np.sqrt(variance))


class IntegralStatsEngine:
	"""
	Stateless factory for IntegralImage tables.
	Example:
		>>> engine = IntegralStatsEngine()
		>>> integral = engine.build(gray)
		>>> mean, std = integral.query(0, 0, 14, 14)
	"""

	def build(self, gray: np.ndarray) -> IntegralImage:
		"""
		Compute sum and squared-sum tables in a single pass.
		Args:
			gray: 2D grayscale image
		Returns:
			IntegralImage of shape (H+1, W+1)
		Raises:
			EmptyInputError: If the image has no pixels
		"""
		if gray is None or gray.size == 0:
			raise EmptyInputError("Cannot build integral image of an empty image")
		if gray.ndim != 2:
			raise ValueError(f"Integral image requires a 2D image, got shape {gray.shape}")

		source = gray if gray.dtype in (np.uint8, np.float32, np.float64) else gray.astype(np.float64)
		source = np.ascontiguousarray(source)
		total, total_sq = cv2.integral2(source, sdepth=cv2.CV_64F, sqdepth=cv2.CV_64F)

		height, width = gray.shape
		logger.debug(f"Built integral image for {width}x{height} input")
		return IntegralImage(sum=total, sq_sum=total_sq, height=height, width=width)

	def local_statistics(self, gray: np.ndarray, window_size: int) -> LocalStatistics:
		"""Build the tables and evaluate per-pixel statistics for an odd window size."""
		return self.build(gray).local_statistics(window_size // 2)


def _box_sum(table: np.ndarray, x1: int, y1: int, x2: int, y2: int) -> float:
	# Inclusive pixel coordinates on a zero-padded table
	return float(
		table[y2 + 1, x2 + 1]
		- table[y1, x2 + 1]
		- table[y2 + 1, x1]
		+ table[y1, x1]
	)


def _box_sums(table: np.ndarray, x1: np.ndarray, y1: np.ndarray, x2: np.ndarray, y2: np.ndarray) -> np.ndarray:
	# Exclusive upper bounds, broadcast rows against columns
	return (
		table[np.ix_(y2, x2)]
		- table[np.ix_(y1, x2)]
		- table[np.ix_(y2, x1)]
		+ table[np.ix_(y1, x1)]
	)
