"""
Unit tests for the core pipeline functionality.
"""

import pytest
import numpy as np
from unittest.mock import Mock

from docbinarize.core.pipeline import BinarizationPipeline, run_pipeline
from docbinarize.core.config import PipelineConfig, PostProcessConfig, get_default_config
from docbinarize.core.base import (
	BinarizationAlgorithm,
	BinarizationResult,
	threshold_image,
	normalize_to_uint8
)
from docbinarize.core.exceptions import ValidationError
from docbinarize.methods.registry import AlgorithmCatalog


# Test fixtures
@pytest.fixture
def simple_image():
	"""Create a simple test image."""
	img = np.ones((100, 100), dtype=np.uint8) * 200
	img[20:30, 20:80] = 50
	img[40:50, 20:80] = 50
	img[60:70, 20:80] = 50
	return img


@pytest.fixture
def mock_algorithm():
	"""Create a mock binarization algorithm."""
	algorithm = Mock(spec=BinarizationAlgorithm)
	algorithm.name = "mock_method"

	def mock_binarize(image, **params):
		binary = np.where(image < 128, 0, 255).astype(np.uint8)
		return BinarizationResult(
			binary_image=binary,
			method="mock_method",
			parameters=params,
			threshold=128.0
		)

	algorithm.binarize = Mock(side_effect=mock_binarize)
	return algorithm


@pytest.fixture
def pipeline_with_mock(mock_algorithm):
	"""Create pipeline with mock algorithm."""
	config = PipelineConfig(method="mock_method")
	catalog = AlgorithmCatalog()
	catalog.register(mock_algorithm)
	return BinarizationPipeline(config, catalog)


class TestBinarizationPipeline:
	"""Test suite for BinarizationPipeline class."""

	def test_pipeline_initialization(self):
		pipeline = BinarizationPipeline()
		assert pipeline.config.method == "otsu_2d"
		assert 'otsu_2d' in pipeline.catalog
		assert pipeline.last_result is None

	def test_run_with_mock(self, pipeline_with_mock, simple_image, mock_algorithm):
		result = pipeline_with_mock.run(simple_image)

		assert result['method'] == "mock_method"
		assert result['threshold'] == 128.0
		assert result['binary_image'].shape == simple_image.shape
		assert result['processing_time'] >= 0
		assert result['metadata']['input_shape'] == simple_image.shape
		mock_algorithm.binarize.assert_called_once()

	def test_run_default_method(self, simple_image):
		pipeline = BinarizationPipeline()
		result = pipeline.run(simple_image)

		binary = result['binary_image']
		assert set(np.unique(binary)).issubset({0, 255})
		assert result['metadata']['algorithm_metadata']['threshold_s'] >= 50
		assert pipeline.last_result is result

	def test_method_override(self, simple_image):
		pipeline = BinarizationPipeline()
		result = pipeline.run(simple_image, method="otsu", method_params={})

		assert result['method'] == "otsu"
		assert 50 <= result['threshold'] < 200

	def test_intermediates(self, simple_image):
		config = get_default_config()
		config.post_processing.enabled = True
		pipeline = BinarizationPipeline(config)

		result = pipeline.run(simple_image, return_intermediates=True)

		assert 'binarized' in result['intermediates']
		assert 'post_processed' in result['intermediates']

	def test_save_intermediates_config_default(self, simple_image):
		config = get_default_config()
		config.save_intermediates = True
		pipeline = BinarizationPipeline(config)

		assert 'binarized' in pipeline.run(simple_image)['intermediates']
		assert 'intermediates' not in pipeline.run(simple_image, return_intermediates=False)

	def test_intermediates_off_by_default(self, simple_image):
		pipeline = BinarizationPipeline(get_default_config())
		assert 'intermediates' not in pipeline.run(simple_image)

	def test_post_processing_uses_morphology(self, pipeline_with_mock, simple_image):
		morphology = Mock()
		morphology.process.side_effect = lambda image, **kwargs: image
		pipeline_with_mock.morphology = morphology
		pipeline_with_mock.config.post_processing = PostProcessConfig(
			enabled=True,
			morphology={
				'closing': {'enabled': True, 'kernel_size': 5, 'kernel_shape': 'ellipse'},
				'opening': {'enabled': False}
			}
		)

		pipeline_with_mock.run(simple_image)

		morphology.process.assert_called_once()
		_, kwargs = morphology.process.call_args
		assert kwargs['operation'] == 'closing'
		assert kwargs['kernel_size'] == 5
		assert kwargs['kernel_shape'] == 'ellipse'

	def test_failed_run_keeps_last_result(self, simple_image):
		pipeline = BinarizationPipeline()
		first = pipeline.run(simple_image, method="otsu", method_params={})

		with pytest.raises(ValidationError):
			pipeline.run(simple_image, method="sauvola", method_params={'k': 5.0})

		assert pipeline.last_result is first

	def test_unknown_method(self, simple_image):
		pipeline = BinarizationPipeline()
		with pytest.raises(KeyError):
			pipeline.run(simple_image, method="does_not_exist")
		assert pipeline.last_result is None

	def test_failure_is_logged(self, simple_image, caplog):
		pipeline = BinarizationPipeline()
		with pytest.raises(KeyError):
			pipeline.run(simple_image, method="does_not_exist")
		assert "Pipeline failed" in caplog.text

	def test_run_batch(self, pipeline_with_mock, simple_image):
		results = pipeline_with_mock.run_batch([simple_image, simple_image])
		assert len(results) == 2

	def test_run_pipeline_with_dict(self, simple_image):
		result = run_pipeline(simple_image, {'method': 'niblack', 'method_params': {'window_size': 21}})
		assert result['method'] == 'niblack'
		assert result['parameters']['window_size'] == 21


class TestBaseHelpers:
	"""Helpers shared by every algorithm."""

	def test_threshold_image_is_inclusive(self):
		gray = np.array([[99, 100, 101]], dtype=np.uint8)
		np.testing.assert_array_equal(threshold_image(gray, 100), [[0, 0, 255]])

	def test_normalize_float_image(self):
		image = np.array([[0.0, 0.5, 1.0]])
		np.testing.assert_array_equal(normalize_to_uint8(image), [[0, 127, 255]])

	def test_normalize_uint16_image(self):
		image = np.array([[0, 65535]], dtype=np.uint16)
		np.testing.assert_array_equal(normalize_to_uint8(image), [[0, 255]])

	def test_result_rejects_non_binary(self):
		with pytest.raises(ValueError):
			BinarizationResult(
				binary_image=np.array([[0, 128]], dtype=np.uint8),
				method="test",
				parameters={}
			)

	def test_result_accepts_declared_levels(self):
		result = BinarizationResult(
			binary_image=np.array([[0, 127, 255]], dtype=np.uint8),
			method="test",
			parameters={},
			levels=(0, 127, 255)
		)
		assert result.levels == (0, 127, 255)
