"""
Unit tests for morphological post-processing.
"""

import pytest
import numpy as np

from docbinarize.postproc.morphology import MorphologicalOperations


@pytest.fixture
def morphology():
	return MorphologicalOperations()


@pytest.fixture
def page():
	"""White page with a dark block, a dark speck and a light hole."""
	img = np.full((40, 40), 255, dtype=np.uint8)
	img[10:30, 10:30] = 0
	img[20, 20] = 255
	img[3, 3] = 0
	return img


class TestMorphologicalOperations:
	"""Test suite for MorphologicalOperations."""

	def test_closing_removes_dark_speck(self, morphology, page):
		out = morphology.closing(page, kernel_size=3)
		assert out[3, 3] == 255
		assert out[15, 15] == 0

	def test_opening_removes_light_hole(self, morphology, page):
		out = morphology.opening(page, kernel_size=3)
		assert out[20, 20] == 0
		assert out[35, 35] == 255

	def test_close_then_open_cleans_both(self, morphology, page):
		out = morphology.close_then_open(page, 3)

		expected = np.full_like(page, 255)
		expected[10:30, 10:30] = 0
		np.testing.assert_array_equal(out, expected)

	def test_dilation_and_erosion(self, morphology):
		img = np.zeros((9, 9), dtype=np.uint8)
		img[4, 4] = 255

		dilated = morphology.dilation(img, kernel_size=3)
		assert np.sum(dilated == 255) == 9
		np.testing.assert_array_equal(morphology.erosion(dilated, kernel_size=3), img)

	@pytest.mark.parametrize("shape", ['rect', 'ellipse', 'cross'])
	def test_kernel_shapes(self, morphology, page, shape):
		out = morphology.process(page, operation='closing', kernel_size=3, kernel_shape=shape)
		assert out.shape == page.shape
		assert set(np.unique(out)).issubset({0, 255})

	def test_kernel_size_one_is_identity(self, morphology, page):
		out = morphology.close_then_open(page, 1)
		np.testing.assert_array_equal(out, page)
		assert out is not page

	def test_input_not_modified(self, morphology, page):
		original = page.copy()
		morphology.close_then_open(page, 3)
		np.testing.assert_array_equal(page, original)

	def test_unknown_operation(self, morphology, page):
		with pytest.raises(ValueError, match="Unknown operation"):
			morphology.process(page, operation='tophat')

	def test_unknown_operation_with_unit_kernel(self, morphology, page):
		with pytest.raises(ValueError, match="Unknown operation"):
			morphology.process(page, operation='bogus', kernel_size=1)

	def test_unknown_kernel_shape_with_unit_kernel(self, morphology, page):
		with pytest.raises(ValueError, match="Unknown kernel shape"):
			morphology.process(page, operation='opening', kernel_size=1, kernel_shape='diamond')

	def test_unknown_kernel_shape(self, morphology, page):
		with pytest.raises(ValueError, match="Unknown kernel shape"):
			morphology.opening(page, kernel_shape='diamond')

	@pytest.mark.parametrize("size", [0, -3, 2.5])
	def test_invalid_kernel_size(self, morphology, page, size):
		with pytest.raises(ValueError):
			morphology.opening(page, kernel_size=size)
