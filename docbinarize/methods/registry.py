"""
Algorithm catalog for discovery and application by name.
The catalog is an explicit object handed to whoever needs it; there is no
module-level instance. It only holds stateless algorithm objects and their
read-only metadata, so a populated catalog can be shared across threads.
"""

from typing import Any, Dict, List, Mapping, Optional
import logging

import numpy as np

from ..core.base import BinarizationAlgorithm
from ..core.integral import IntegralStatsEngine

logger = logging.getLogger(__name__)


class AlgorithmCatalog:
	"""
	Name -> algorithm mapping with description and validation helpers.
	Example:
		>>> catalog = create_default_catalog()
		>>> catalog.list_algorithms()
		['niblack', 'nick', 'otsu', 'otsu_2d', 'otsu_local', 'otsu_multi', 'sauvola', 'wolf_jolion']
		>>> binary = catalog.apply('sauvola', image, {'window_size': 25.0})
	"""

	def __init__(self):
		self._algorithms: Dict[str, BinarizationAlgorithm] = {}

	def register(self, algorithm: BinarizationAlgorithm, override: bool = False) -> None:
		"""
		Register an algorithm instance under its name.
		Args:
			algorithm: Algorithm instance
			override: Whether to override existing registration
		Raises:
			ValueError: If name already registered and override=False
		"""
		name = algorithm.name
		if name in self._algorithms and not override:
			raise ValueError(
				f"Algorithm '{name}' already registered. "
				"Use override=True to replace."
			)

		self._algorithms[name] = algorithm
		logger.debug(f"Registered algorithm: {name}")

	def get(self, name: str) -> BinarizationAlgorithm:
		"""
		Get algorithm instance by name.
		Args:
			name: Algorithm identifier
		Returns:
			Algorithm instance
		Raises:
			KeyError: If algorithm not found
		"""
		try:
			return self._algorithms[name]
		except KeyError:
			raise KeyError(
				f"Algorithm '{name}' not found. "
				f"Available: {self.list_algorithms()}"
			) from None

	def __contains__(self, name: str) -> bool:
		return name in self._algorithms

	def __len__(self) -> int:
		return len(self._algorithms)

	def list_algorithms(self) -> List[str]:
		"""
		List all registered algorithm names.
		Returns:
			Sorted list of algorithm names
		"""
		return sorted(self._algorithms)

	def describe(self, name: str) -> Dict[str, Any]:
		"""
		Get information about an algorithm.
		Args:
			name: Algorithm identifier
		Returns:
			Dictionary with name, description, category, default_params and
			parameter_schema (one dictionary per parameter)
		"""
		algorithm = self.get(name)
		return {
			'name': algorithm.name,
			'description': algorithm.description,
			'category': algorithm.category,
			'default_params': algorithm.get_default_params(),
			'parameter_schema': algorithm.get_parameter_info()
		}

	def validate(self, name: str, params: Optional[Mapping[str, Any]] = None):
		"""
		Validate parameters for an algorithm without touching any image.
		Returns:
			Typed parameter object
		Raises:
			KeyError: If algorithm not found
			ValidationError: If a parameter is unknown or out of range
		"""
		return self.get(name).validate(params)

	def apply(self, name: str, image: np.ndarray, params: Optional[Mapping[str, Any]] = None) -> np.ndarray:
		"""
		Run an algorithm by name.
		Args:
			name: Algorithm identifier
			image: Input image, never modified
			params: Loosely typed parameter map
		Returns:
			New binary image
		"""
		return self.get(name).apply(image, params)


def create_default_catalog() -> AlgorithmCatalog:
	"""
	Build a catalog holding every built-in algorithm.
	The four local adaptive algorithms share one IntegralStatsEngine.
	Returns:
		Populated AlgorithmCatalog
	"""
	from .global_methods import OtsuThreshold, MultiOtsuThreshold, LocalOtsuThreshold
	from .adaptive_methods import NiblackThreshold, SauvolaThreshold, WolfJolionThreshold, NickThreshold
	from .advanced_methods import TwoDOtsuThreshold

	engine = IntegralStatsEngine()
	algorithms = [
		# Histogram methods
		OtsuThreshold(),
		MultiOtsuThreshold(),
		LocalOtsuThreshold(),
		# Adaptive methods
		NiblackThreshold(engine),
		SauvolaThreshold(engine),
		WolfJolionThreshold(engine),
		NickThreshold(engine),
		# Advanced methods
		TwoDOtsuThreshold()
	]

	catalog = AlgorithmCatalog()
	for algorithm in algorithms:
		catalog.register(algorithm)
	return catalog
