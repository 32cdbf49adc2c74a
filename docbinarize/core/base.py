"""
Core base classes and interfaces for binarization algorithms.
This module defines the abstract base class every binarization method implements,
the result container, and helpers shared across the algorithm families.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Mapping, Optional, Tuple
import logging
import time

import numpy as np
import cv2

from .exceptions import EmptyInputError
from .params import ParameterSchema

logger = logging.getLogger(__name__)

FOREGROUND = 0
BACKGROUND = 255


@dataclass
class BinarizationResult:
	"""
	Container for binarization results and metadata.
	Attributes:
		binary_image: Output image (0/255, or the declared output levels)
		method: Name of the method used
		parameters: Validated parameters used for binarization
		threshold: Computed threshold value(s)
		processing_time: Time taken in seconds
		metadata: Additional algorithm-specific metadata
		levels: Pixel values the output is allowed to contain
	"""
	binary_image: np.ndarray
	method: str
	parameters: Dict[str, Any]
	threshold: Optional[float] = None
	processing_time: float = 0.0
	metadata: Dict[str, Any] = field(default_factory=dict)
	levels: Tuple[int, ...] = (FOREGROUND, BACKGROUND)

	def __post_init__(self):
		"""Validate the output image."""
		if self.binary_image.dtype != np.uint8:
			raise ValueError(f"Binary image must be uint8, got {self.binary_image.dtype}")

		unique_vals = np.unique(self.binary_image)
		if not np.isin(unique_vals, self.levels).all():
			raise ValueError(f"Output image must contain only {list(self.levels)}, got {unique_vals}")


class BinarizationAlgorithm(ABC):
	"""
	Abstract base class for all binarization algorithms.
	Subclasses declare a ParameterSchema and implement `_binarize`, which
	receives a validated grayscale uint8 image and the typed parameter object.
	`binarize` validates parameters before the image so that no pixel work
	happens for a rejected call. Algorithms hold no per-call state and may be
	shared across threads.
	"""

	# "histogram", "adaptive" or "2d"
	category = ""

	def __init__(self, name: str, description: str = ""):
		"""Initialize the algorithm.

		Args:
			name: Unique name for the algorithm
			description: Human-readable description
		"""
		self.name = name
		self.description = description

	@abstractmethod
	def parameter_schema(self) -> ParameterSchema:
		"""
		Return the schema describing this algorithm's parameters.
		Returns:
			ParameterSchema bound to the algorithm's parameter dataclass
		"""
		pass

	@abstractmethod
	def _binarize(self, gray: np.ndarray, params) -> BinarizationResult:
		"""
		Compute the output for a validated grayscale image.
		Args:
			gray: Grayscale uint8 image, never modified
			params: Typed parameter object built by the schema
		Returns:
			BinarizationResult; processing_time is filled in by `binarize`
		"""
		pass

	def get_default_params(self) -> Dict[str, Any]:
		"""
		Return default parameters for this algorithm.
		Returns:
			Dictionary of parameter names and default values
		"""
		return self.parameter_schema().defaults()

	def get_parameter_info(self):
		"""Return the parameter schema as a list of plain dictionaries."""
		return self.parameter_schema().describe()

	def validate(self, params: Optional[Mapping[str, Any]] = None):
		"""
		Validate a loosely typed parameter map.
		Args:
			params: Name -> value map
		Returns:
			Typed parameter object
		Raises:
			ValidationError: If a parameter is unknown or out of range
		"""
		return self.parameter_schema().parse(params)

	def binarize(self, image: np.ndarray, **params) -> BinarizationResult:
		"""
		Apply binarization to the input image.
		Args:
			image: Input grayscale image (uint8 or float); color images are converted
			**params: Algorithm-specific parameters
		Returns:
			BinarizationResult containing binary image and metadata
		Raises:
			ValidationError: If a parameter is invalid
			EmptyInputError: If the image is empty or None
		"""
		start_time = time.time()

		typed_params = self.validate(params)
		gray = self.validate_image(image)

		logger.debug(f"{self.name}: processing {gray.shape[1]}x{gray.shape[0]} image with {typed_params}")
		result = self._binarize(gray, typed_params)
		result.processing_time = time.time() - start_time
		return result

	def apply(self, image: np.ndarray, params: Optional[Mapping[str, Any]] = None) -> np.ndarray:
		"""
		Catalog-level entry point returning only the output image.
		Args:
			image: Input image
			params: Loosely typed parameter map
		Returns:
			New binary image owned by the caller
		"""
		return self.binarize(image, **dict(params or {})).binary_image

	def validate_image(self, image: np.ndarray) -> np.ndarray:
		"""
		Validate and preprocess input image.
		Args:
			image: Input image
		Returns:
			Validated grayscale image as uint8
		Raises:
			EmptyInputError: If image is empty or None
		"""
		if image is None or image.size == 0:
			raise EmptyInputError("Input image is empty or None")

		# Handle different input types
		if len(image.shape) == 3:
			if image.shape[2] == 1:
				image = image[:, :, 0]
			elif image.shape[2] == 3:
				image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
			elif image.shape[2] == 4:
				image = cv2.cvtColor(image[:, :, :3], cv2.COLOR_BGR2GRAY)

		return normalize_to_uint8(image)

	def __repr__(self) -> str:
		return f"{self.__class__.__name__}(name='{self.name}')"


class PostProcessor(ABC):
	"""Abstract base class for post-processing operations."""

	def __init__(self, name: str):
		self.name = name

	@abstractmethod
	def process(self, binary_image: np.ndarray, **params) -> np.ndarray:
		"""
		Apply post-processing to binary image.
		Args:
			binary_image: Input binary image (0/255)
			**params: Operation-specific parameters
		Returns:
			Processed binary image
		"""
		pass


def threshold_image(gray: np.ndarray, threshold) -> np.ndarray:
	"""
	Classify pixels against a scalar or per-pixel threshold.
	Pixels with intensity <= threshold are foreground (0), the rest background (255).
	Args:
		gray: Grayscale image
		threshold: Scalar or array broadcastable to gray
	Returns:
		New binary uint8 image
	"""
	return np.where(gray <= threshold, FOREGROUND, BACKGROUND).astype(np.uint8)


def normalize_to_uint8(image: np.ndarray) -> np.ndarray:
	"""
	Normalize any image to uint8 range [0, 255].
	Args:
		image: Input image of any type
	Returns:
		Normalized uint8 image
	"""
	if image.dtype == np.uint8:
		return image

	# Handle float images
	if image.dtype in [np.float32, np.float64]:
		if image.max() <= 1.0:
			return (image * 255).astype(np.uint8)
		return np.clip(image, 0, 255).astype(np.uint8)

	# Handle uint16
	if image.dtype == np.uint16:
		return (image // 256).astype(np.uint8)

	# Default conversion
	return np.clip(image, 0, 255).astype(np.uint8)
