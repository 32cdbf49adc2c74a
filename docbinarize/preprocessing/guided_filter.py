"""
Self-guided edge-preserving filter.
The guide image equals the input, so the local covariance reduces to the local
variance. Flat regions (variance << epsilon) are smoothed towards their box
mean while strong edges (variance >> epsilon) are kept.
"""

import logging

import numpy as np
import cv2

from ..core.exceptions import EmptyInputError

logger = logging.getLogger(__name__)

MIN_EPSILON = 0.001


class GuidedFilter:
	"""
	Self-guided filter over a grayscale uint8 image.
	Example:
		>>> guide = GuidedFilter(radius=5, epsilon=0.02).apply(gray)
	"""

	def __init__(self, radius: int = 5, epsilon: float = 0.02):
		"""
		Args:
			radius: Window radius r; the box kernel is (2r+1) x (2r+1)
			epsilon: Regularization in normalized [0, 1] intensity units
		"""
		self.radius = max(int(radius), 1)
		self.epsilon = epsilon if epsilon > 0 else MIN_EPSILON

	@property
	def kernel_size(self) -> int:
		return 2 * self.radius + 1

	def apply(self, gray: np.ndarray) -> np.ndarray:
		"""
		Filter a grayscale image.
		Any numeric failure falls back to returning a copy of the input so a
		single bad step never aborts the caller's processing.
		Args:
			gray: 2D uint8 image
		Returns:
			New filtered uint8 image of the same shape
		"""
		if gray is None or gray.size == 0:
			raise EmptyInputError("Guided filter input is empty")

		try:
			filtered = self._filter(gray)
		except cv2.error as e:
			logger.warning(f"Guided filter failed ({e}); using unfiltered grayscale")
			return gray.copy()

		if filtered is None or filtered.size == 0 or not np.isfinite(filtered).all():
			logger.warning("Guided filter produced an empty or non-finite result; using unfiltered grayscale")
			return gray.copy()

		return np.clip(np.rint(filtered * 255.0), 0, 255).astype(np.uint8)

	def _filter(self, gray: np.ndarray) -> np.ndarray:
		ksize = (self.kernel_size, self.kernel_size)
		image = gray.astype(np.float64) / 255.0

		mean_i = cv2.boxFilter(image, -1, ksize, borderType=cv2.BORDER_REFLECT_101)
		mean_ii = cv2.boxFilter(image * image, -1, ksize, borderType=cv2.BORDER_REFLECT_101)
		var_i = mean_ii - mean_i * mean_i

		# Guide == input: cov(I, p) == var(I)
		a = var_i / (var_i + self.epsilon)
		b = mean_i - a * mean_i

		mean_a = cv2.boxFilter(a, -1, ksize, borderType=cv2.BORDER_REFLECT_101)
		mean_b = cv2.boxFilter(b, -1, ksize, borderType=cv2.BORDER_REFLECT_101)

		logger.debug(f"Guided filter radius={self.radius} epsilon={self.epsilon:.3f}")
		return mean_a * image + mean_b

	def __repr__(self) -> str:
		return f"GuidedFilter(radius={self.radius}, epsilon={self.epsilon})"


def guided_filter(gray: np.ndarray, radius: int = 5, epsilon: float = 0.02) -> np.ndarray:
	"""Convenience wrapper around GuidedFilter.apply."""
	return GuidedFilter(radius, epsilon).apply(gray)
