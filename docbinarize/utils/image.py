"""Image I/O helpers over OpenCV codecs."""
from pathlib import Path
from typing import Union
import logging

import numpy as np
import cv2

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.tif', '.tiff', '.bmp')


def imread(path: Union[str, Path], grayscale: bool = True) -> np.ndarray:
	"""
	Read an image from disk.
	Args:
		path: Image path
		grayscale: Decode as single-channel grayscale
	Returns:
		uint8 image array
	Raises:
		FileNotFoundError: If the file does not exist
		IOError: If OpenCV cannot decode the file
	"""
	path = Path(path)
	if not path.exists():
		raise FileNotFoundError(f"Image not found: {path}")

	flags = cv2.IMREAD_GRAYSCALE if grayscale else cv2.IMREAD_COLOR
	image = cv2.imread(str(path), flags)
	if image is None:
		raise IOError(f"Failed to decode image: {path}")

	logger.debug(f"Loaded {path} with shape {image.shape}")
	return image


def imsave(path: Union[str, Path], image: np.ndarray) -> None:
	"""
	Write an image to disk, creating parent directories.
	Raises:
		IOError: If OpenCV cannot encode the file
	"""
	path = Path(path)
	path.parent.mkdir(parents=True, exist_ok=True)
	if not cv2.imwrite(str(path), image):
		raise IOError(f"Failed to write image: {path}")
	logger.debug(f"Saved {path}")


def list_images(directory: Union[str, Path]):
	"""Sorted image files directly inside a directory."""
	directory = Path(directory)
	return sorted(
		p for p in directory.iterdir()
		if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
	)
