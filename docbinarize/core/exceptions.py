"""
Exception hierarchy for the binarization engine.
Parameter and input problems are raised before any pixel work. Numeric
degeneracies inside an algorithm (flat windows, zero variance) are absorbed
by fallback values and never surface as exceptions.
"""


class BinarizationError(Exception):
	"""Base class for all engine errors."""


class ValidationError(BinarizationError, ValueError):
	"""A parameter is unknown, malformed or outside its allowed range."""


class EmptyInputError(ValidationError):
	"""The input image is None or has zero size."""


class DimensionMismatchError(BinarizationError, ValueError):
	"""Two images that must be co-registered have different shapes."""

	def __init__(self, first_shape, second_shape):
		super().__init__(
			f"Image dimensions do not match: {tuple(first_shape)} vs {tuple(second_shape)}"
		)
		self.first_shape = tuple(first_shape)
		self.second_shape = tuple(second_shape)
