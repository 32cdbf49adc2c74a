"""
Unit tests for evaluation metrics.
"""

import pytest
import numpy as np

from docbinarize.core.exceptions import DimensionMismatchError
from docbinarize.evaluation.metrics import (
	ImageMetrics,
	MetricsCalculator,
	EvaluationMetrics,
	compute_metrics
)


@pytest.fixture
def ground_truth():
	gt = np.full((40, 40), 255, dtype=np.uint8)
	gt[10:20, 5:35] = 0
	return gt


@pytest.fixture
def prediction(ground_truth):
	"""Ground truth with half of one text row missed and a false speck."""
	pred = ground_truth.copy()
	pred[10, 5:20] = 255
	pred[30:32, 30:32] = 0
	return pred


class TestImageMetrics:
	"""Test suite for ImageMetrics."""

	def test_psnr_identical(self, ground_truth):
		assert ImageMetrics.psnr(ground_truth, ground_truth) == 100.0

	def test_psnr_value(self, ground_truth, prediction):
		mse = np.mean((ground_truth.astype(float) - prediction.astype(float)) ** 2)
		expected = 20 * np.log10(255.0) - 10 * np.log10(mse)
		assert ImageMetrics.psnr(ground_truth, prediction) == pytest.approx(expected)

	def test_psnr_inverted_is_zero(self, ground_truth):
		assert ImageMetrics.psnr(ground_truth, 255 - ground_truth) == pytest.approx(0.0, abs=1e-9)

	def test_ssim_identical(self, ground_truth):
		assert ImageMetrics.ssim(ground_truth, ground_truth) == pytest.approx(1.0)

	def test_ssim_range(self, ground_truth, prediction):
		value = ImageMetrics.ssim(ground_truth, prediction)
		assert 0.0 <= value < 1.0

	def test_ssim_tiny_image(self):
		a = np.array([[0, 255]], dtype=np.uint8)
		assert ImageMetrics.ssim(a, a) == 1.0
		assert ImageMetrics.ssim(a, 255 - a) == 0.0

	def test_iou(self, ground_truth, prediction):
		# 300 true foreground, 15 missed, 4 false
		assert ImageMetrics.iou(ground_truth, prediction) == pytest.approx(285 / 304)

	def test_iou_no_foreground(self):
		blank = np.full((5, 5), 255, dtype=np.uint8)
		assert ImageMetrics.iou(blank, blank) == 1.0

	def test_foreground_metrics(self, ground_truth, prediction):
		metrics = ImageMetrics.foreground_metrics(ground_truth, prediction)

		precision = 285 / 289
		recall = 285 / 300
		assert metrics['precision'] == pytest.approx(precision)
		assert metrics['recall'] == pytest.approx(recall)
		assert metrics['f1_score'] == pytest.approx(2 * precision * recall / (precision + recall))

	def test_foreground_metrics_empty_prediction(self, ground_truth):
		blank = np.full_like(ground_truth, 255)
		metrics = ImageMetrics.foreground_metrics(ground_truth, blank)
		assert metrics == {'precision': 0.0, 'recall': 0.0, 'f1_score': 0.0}

	def test_pixel_accuracy(self, ground_truth, prediction):
		assert ImageMetrics.pixel_accuracy(ground_truth, prediction) == pytest.approx(1 - 19 / 1600)

	@pytest.mark.parametrize("metric", ['psnr', 'ssim', 'iou', 'pixel_accuracy', 'foreground_metrics'])
	def test_shape_mismatch(self, metric):
		with pytest.raises(DimensionMismatchError):
			getattr(ImageMetrics, metric)(np.zeros((10, 10), np.uint8), np.zeros((10, 12), np.uint8))


class TestMetricsCalculator:
	"""Test suite for MetricsCalculator."""

	def test_compute_all(self, ground_truth, prediction):
		metrics = MetricsCalculator().compute_all(prediction, ground_truth)

		assert isinstance(metrics, EvaluationMetrics)
		assert metrics.recall == pytest.approx(285 / 300)
		assert metrics.psnr > 0
		assert set(MetricsCalculator.METRIC_NAMES).issubset(metrics.to_dict())

	def test_compute_batch(self, ground_truth, prediction):
		per_image, aggregate = MetricsCalculator().compute_batch(
			[ground_truth, prediction],
			[ground_truth, ground_truth]
		)

		assert len(per_image) == 2
		assert aggregate['psnr_max'] == 100.0
		assert aggregate['iou_min'] == pytest.approx(285 / 304)
		assert aggregate['f1_score_mean'] == pytest.approx((1.0 + per_image[1].f1_score) / 2)

	def test_compute_batch_length_mismatch(self, ground_truth):
		with pytest.raises(ValueError):
			MetricsCalculator().compute_batch([ground_truth], [])

	def test_compute_metrics_dict(self, ground_truth):
		result = compute_metrics(ground_truth, ground_truth)
		assert result['f1_score'] == 1.0
		assert result['psnr'] == 100.0

	def test_compute_metrics_shape_mismatch(self, ground_truth):
		with pytest.raises(DimensionMismatchError):
			compute_metrics(ground_truth[:, :-1], ground_truth)
