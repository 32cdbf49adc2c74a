"""
Morphological operations for binary image post-processing.
This module provides the opening, closing, dilation and erosion used to clean
up binary images after thresholding. Operations act on pixel values directly,
so on a 0/255 document image opening removes isolated light specks and
closing removes isolated dark specks.
"""

from typing import Dict
import logging

import numpy as np
import cv2

from ..core.base import PostProcessor

logger = logging.getLogger(__name__)


class MorphologicalOperations(PostProcessor):
	"""
	Morphological operations for binary image processing.
	Provides opening, closing, dilation and erosion with configurable kernels.
	Example:
		>>> processor = MorphologicalOperations()
		>>> cleaned = processor.process(binary_image, operation='opening', kernel_size=3, kernel_shape='ellipse')
	"""

	OPERATIONS = ('opening', 'closing', 'dilation', 'erosion')

	def __init__(self):
		super().__init__(name="morphological_operations")
		self.kernel_shapes: Dict[str, int] = {
			'rect': cv2.MORPH_RECT,
			'ellipse': cv2.MORPH_ELLIPSE,
			'cross': cv2.MORPH_CROSS
		}

	def process(self, binary_image: np.ndarray, **params) -> np.ndarray:
		"""
		Apply morphological operation to binary image.
		Args:
			binary_image: Input binary image (0/255)
			**params: Operation parameters
				- operation: 'opening', 'closing', 'dilation', 'erosion'
				- kernel_size: Kernel size (default: 3)
				- kernel_shape: 'rect', 'ellipse', 'cross' (default: 'rect')
				- iterations: Number of iterations (default: 1)
		Returns:
			New processed binary image
		Raises:
			ValueError: If the operation, kernel shape or kernel size is invalid
		"""
		operation = params.get('operation', 'opening')
		kernel_size = params.get('kernel_size', 3)
		kernel_shape = params.get('kernel_shape', 'rect')
		iterations = params.get('iterations', 1)

		if operation not in self.OPERATIONS:
			raise ValueError(f"Unknown operation: {operation}. Expected one of {list(self.OPERATIONS)}")

		kernel = self._get_kernel(kernel_size, kernel_shape)
		if kernel_size == 1:
			# A 1x1 structuring element is the identity
			return binary_image.copy()

		if operation == 'opening':
			result = cv2.morphologyEx(binary_image, cv2.MORPH_OPEN, kernel, iterations=iterations)
		elif operation == 'closing':
			result = cv2.morphologyEx(binary_image, cv2.MORPH_CLOSE, kernel, iterations=iterations)
		elif operation == 'dilation':
			result = cv2.dilate(binary_image, kernel, iterations=iterations)
		elif operation == 'erosion':
			result = cv2.erode(binary_image, kernel, iterations=iterations)

		logger.debug(f"Applied {operation} with {kernel_shape} kernel {kernel_size}x{kernel_size}")
		return result

	def _get_kernel(self, size: int, shape: str) -> np.ndarray:
		"""
		Create morphological kernel.
		Args:
			size: Kernel size
			shape: Kernel shape ('rect', 'ellipse', 'cross')
		Returns:
			Morphological kernel
		"""
		if shape not in self.kernel_shapes:
			raise ValueError(f"Unknown kernel shape: {shape}")
		if not isinstance(size, (int, np.integer)) or size < 1:
			raise ValueError(f"Kernel size must be a positive integer, got {size!r}")

		return cv2.getStructuringElement(self.kernel_shapes[shape], (int(size), int(size)))

	def opening(self, binary_image: np.ndarray, kernel_size: int = 3, kernel_shape: str = 'rect', iterations: int = 1) -> np.ndarray:
		"""
		Apply morphological opening (erosion followed by dilation).
		Args:
			binary_image: Input binary image
			kernel_size: Kernel size
			kernel_shape: Kernel shape
			iterations: Number of iterations
		Returns:
			Opened binary image
		"""
		return self.process(
			binary_image,
			operation='opening',
			kernel_size=kernel_size,
			kernel_shape=kernel_shape,
			iterations=iterations
		)

	def closing(self, binary_image: np.ndarray, kernel_size: int = 3, kernel_shape: str = 'rect', iterations: int = 1) -> np.ndarray:
		"""
		Apply morphological closing (dilation followed by erosion).
		Args:
			binary_image: Input binary image
			kernel_size: Kernel size
			kernel_shape: Kernel shape
			iterations: Number of iterations
		Returns:
			Closed binary image
		"""
		return self.process(
			binary_image,
			operation='closing',
			kernel_size=kernel_size,
			kernel_shape=kernel_shape,
			iterations=iterations
		)

	def dilation(self, binary_image: np.ndarray, kernel_size: int = 3, kernel_shape: str = 'rect', iterations: int = 1) -> np.ndarray:
		return self.process(
			binary_image,
			operation='dilation',
			kernel_size=kernel_size,
			kernel_shape=kernel_shape,
			iterations=iterations
		)

	def erosion(self, binary_image: np.ndarray, kernel_size: int = 3, kernel_shape: str = 'rect', iterations: int = 1) -> np.ndarray:
		return self.process(
			binary_image,
			operation='erosion',
			kernel_size=kernel_size,
			kernel_shape=kernel_shape,
			iterations=iterations
		)

	def close_then_open(self, binary_image: np.ndarray, kernel_size: int, kernel_shape: str = 'rect') -> np.ndarray:
		"""
		Closing followed by opening with the same kernel.
		Removes isolated specks of both polarities in one call.
		Args:
			binary_image: Input binary image
			kernel_size: Kernel size; 1 leaves the image unchanged
			kernel_shape: Kernel shape
		Returns:
			Cleaned binary image
		"""
		closed = self.closing(binary_image, kernel_size=kernel_size, kernel_shape=kernel_shape)
		return self.opening(closed, kernel_size=kernel_size, kernel_shape=kernel_shape)
