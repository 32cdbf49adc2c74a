"""
Metrics for evaluating binarization quality.
This module compares a binarized image against a ground truth binary image
with image quality metrics (PSNR, SSIM) and foreground pixel metrics
(precision, recall, F-measure, IoU, accuracy).
"""

from typing import Dict, Any, Optional, Tuple, List
from dataclasses import dataclass, field
import logging

import numpy as np
from skimage.metrics import structural_similarity

from ..core.base import FOREGROUND
from ..core.exceptions import DimensionMismatchError

logger = logging.getLogger(__name__)

MAX_PSNR = 100.0


@dataclass
class EvaluationMetrics:
	"""
	Container for evaluation metrics.
	Attributes:
		precision: Foreground precision (0-1, higher is better)
		recall: Foreground recall (0-1, higher is better)
		f1_score: Foreground F-measure (0-1, higher is better)
		psnr: Peak Signal-to-Noise Ratio in dB, clamped to [0, 100]
		ssim: Structural Similarity Index, clamped to [0, 1]
		iou: Intersection over Union (0-1, higher is better)
		pixel_accuracy: Fraction of matching pixels
		metadata: Additional metrics
	"""
	precision: Optional[float] = None
	recall: Optional[float] = None
	f1_score: Optional[float] = None
	psnr: Optional[float] = None
	ssim: Optional[float] = None
	iou: Optional[float] = None
	pixel_accuracy: Optional[float] = None
	metadata: Dict[str, Any] = field(default_factory=dict)

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary."""
		return {
			'precision': self.precision,
			'recall': self.recall,
			'f1_score': self.f1_score,
			'psnr': self.psnr,
			'ssim': self.ssim,
			'iou': self.iou,
			'pixel_accuracy': self.pixel_accuracy,
			**self.metadata
		}


def _check_shapes(reference: np.ndarray, hypothesis: np.ndarray) -> None:
	if reference.shape != hypothesis.shape:
		raise DimensionMismatchError(reference.shape, hypothesis.shape)


class ImageMetrics:
	"""
	Image quality metrics for binary images.
	Computes PSNR, SSIM, IoU, and pixel-level accuracy metrics by comparing binary image to ground truth.
	All metrics raise DimensionMismatchError for images of different shape.
	"""

	@staticmethod
	def psnr(reference: np.ndarray, hypothesis: np.ndarray) -> float:
		"""
		Compute Peak Signal-to-Noise Ratio (PSNR).
		PSNR = 20 * log10(MAX) - 10 * log10(MSE)
		Args:
			reference: Ground truth binary image
			hypothesis: Binarized image to evaluate
		Returns:
			PSNR in dB clamped to [0, 100]; identical images give 100
		"""
		_check_shapes(reference, hypothesis)
		mse = np.mean((reference.astype(float) - hypothesis.astype(float)) ** 2)

		if mse == 0:
			return MAX_PSNR

		max_pixel = 255.0
		psnr = 20 * np.log10(max_pixel) - 10 * np.log10(mse)

		return float(np.clip(psnr, 0.0, MAX_PSNR))

	@staticmethod
	def ssim(reference: np.ndarray, hypothesis: np.ndarray) -> float:
		"""
		Compute Structural Similarity Index (SSIM).
		Args:
			reference: Ground truth binary image
			hypothesis: Binarized image to evaluate
		Returns:
			SSIM value clamped to [0, 1]
		"""
		_check_shapes(reference, hypothesis)

		# The Gaussian-free SSIM window must be odd and fit inside the image
		win_size = min(7, min(reference.shape[:2]))
		if win_size % 2 == 0:
			win_size -= 1
		if win_size < 3:
			logger.debug("Image too small for SSIM window, falling back to exact comparison")
			return 1.0 if np.array_equal(reference, hypothesis) else 0.0

		value = structural_similarity(reference, hypothesis, data_range=255, win_size=win_size)
		return float(np.clip(value, 0.0, 1.0))

	@staticmethod
	def iou(reference: np.ndarray, hypothesis: np.ndarray, foreground_value: int = FOREGROUND) -> float:
		"""
		Compute Intersection over Union (IoU) for foreground.
		Also known as Jaccard Index.
		Args:
			reference: Ground truth binary image
			hypothesis: Binarized image to evaluate
			foreground_value: Pixel value representing foreground (default: 0)
		Returns:
			IoU value (0-1, higher is better)
		"""
		_check_shapes(reference, hypothesis)
		ref_fg = reference == foreground_value
		hyp_fg = hypothesis == foreground_value

		intersection = np.sum(ref_fg & hyp_fg)
		union = np.sum(ref_fg | hyp_fg)

		if union == 0:
			return 1.0

		return float(intersection / union)

	@staticmethod
	def pixel_accuracy(reference: np.ndarray, hypothesis: np.ndarray) -> float:
		_check_shapes(reference, hypothesis)
		return float(np.mean(reference == hypothesis))

	@staticmethod
	def foreground_metrics(
		reference: np.ndarray,
		hypothesis: np.ndarray,
		foreground_value: int = FOREGROUND
	) -> Dict[str, float]:
		"""
		Compute precision, recall, F1 for foreground pixels.
		Args:
			reference: Ground truth binary image
			hypothesis: Binarized image to evaluate
			foreground_value: Pixel value representing foreground
		Returns:
			Dictionary with precision, recall, f1_score
		"""
		_check_shapes(reference, hypothesis)
		ref_fg = reference == foreground_value
		hyp_fg = hypothesis == foreground_value

		true_positive = np.sum(ref_fg & hyp_fg)
		false_positive = np.sum((~ref_fg) & hyp_fg)
		false_negative = np.sum(ref_fg & (~hyp_fg))

		precision = true_positive / (true_positive + false_positive) if (true_positive + false_positive) > 0 else 0.0
		recall = true_positive / (true_positive + false_negative) if (true_positive + false_negative) > 0 else 0.0
		f1_score = 2 * (precision * recall) / (precision + recall) if (precision + recall) > 0 else 0.0

		return {
			'precision': float(precision),
			'recall': float(recall),
			'f1_score': float(f1_score)
		}


class MetricsCalculator:
	"""
	Single interface computing every image metric.
	Example:
		>>> calculator = MetricsCalculator()
		>>> metrics = calculator.compute_all(result, gt_image)
		>>> metrics.f1_score
	"""

	METRIC_NAMES = ('precision', 'recall', 'f1_score', 'psnr', 'ssim', 'iou', 'pixel_accuracy')

	def __init__(self):
		self.image_metrics = ImageMetrics()

	def compute_all(self, binary_image: np.ndarray, ground_truth_image: np.ndarray) -> EvaluationMetrics:
		"""
		Compute all available metrics.
		Args:
			binary_image: Binarized image to evaluate
			ground_truth_image: Ground truth binary image
		Returns:
			EvaluationMetrics with all computed metrics
		Raises:
			DimensionMismatchError: If the images differ in shape
		"""
		_check_shapes(ground_truth_image, binary_image)

		fg_metrics = self.image_metrics.foreground_metrics(ground_truth_image, binary_image)
		return EvaluationMetrics(
			precision=fg_metrics['precision'],
			recall=fg_metrics['recall'],
			f1_score=fg_metrics['f1_score'],
			psnr=self.image_metrics.psnr(ground_truth_image, binary_image),
			ssim=self.image_metrics.ssim(ground_truth_image, binary_image),
			iou=self.image_metrics.iou(ground_truth_image, binary_image),
			pixel_accuracy=self.image_metrics.pixel_accuracy(ground_truth_image, binary_image)
		)

	def compute_batch(
		self,
		binary_images: list,
		ground_truth_images: list
	) -> Tuple[List[EvaluationMetrics], Dict[str, float]]:
		"""
		Compute metrics for batch of images.
		Args:
			binary_images: List of binarized images
			ground_truth_images: List of ground truth images
		Returns:
			Tuple of (per-image metrics list, aggregate statistics dict)
		"""
		if len(binary_images) != len(ground_truth_images):
			raise ValueError("binary_images and ground_truth_images must have the same length")

		per_image_metrics = [
			self.compute_all(binary, truth)
			for binary, truth in zip(binary_images, ground_truth_images)
		]

		return per_image_metrics, self._aggregate_metrics(per_image_metrics)

	def _aggregate_metrics(self, metrics_list: List[EvaluationMetrics]) -> Dict[str, float]:
		"""
		Aggregate metrics from multiple images.
		Returns:
			Dictionary with mean, std, min, max, median for each metric
		"""
		aggregate = {}

		for name in self.METRIC_NAMES:
			values = [getattr(m, name) for m in metrics_list if getattr(m, name) is not None]

			if values:
				aggregate[f'{name}_mean'] = float(np.mean(values))
				aggregate[f'{name}_std'] = float(np.std(values))
				aggregate[f'{name}_min'] = float(np.min(values))
				aggregate[f'{name}_max'] = float(np.max(values))
				aggregate[f'{name}_median'] = float(np.median(values))

		return aggregate


def compute_metrics(binary_image: np.ndarray, ground_truth_image: np.ndarray) -> Dict[str, Any]:
	"""Compute every metric for one image pair as a plain dictionary."""
	return MetricsCalculator().compute_all(binary_image, ground_truth_image).to_dict()
