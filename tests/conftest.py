"""Shared fixtures for the test suite."""

import pytest
import numpy as np


@pytest.fixture
def text_image():
	"""Light page with three dark text lines."""
	img = np.ones((100, 100), dtype=np.uint8) * 200
	img[20:30, 20:80] = 50
	img[45:55, 20:80] = 50
	img[70:80, 20:80] = 50
	return img


@pytest.fixture
def bimodal_image():
	"""Two-valued 30/220 image with a dark block in the middle."""
	img = np.full((80, 120), 220, dtype=np.uint8)
	img[20:60, 30:90] = 30
	return img


@pytest.fixture
def gradient_image():
	"""Text on a background whose brightness rises from left to right."""
	cols = np.linspace(90, 230, 160)
	img = np.tile(cols, (120, 1)).astype(np.uint8)
	img[30:38, 10:150] = (img[30:38, 10:150] * 0.35).astype(np.uint8)
	img[60:68, 10:150] = (img[60:68, 10:150] * 0.35).astype(np.uint8)
	img[90:98, 10:150] = (img[90:98, 10:150] * 0.35).astype(np.uint8)
	return img


@pytest.fixture
def random_image():
	"""Reproducible uniform noise."""
	rng = np.random.default_rng(1234)
	return rng.integers(0, 256, size=(64, 48), dtype=np.uint8)


@pytest.fixture
def rgb_image(text_image):
	"""BGR version of the text image."""
	return np.dstack([text_image] * 3)
