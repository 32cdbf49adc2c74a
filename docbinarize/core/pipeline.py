"""
Unified pipeline for document binarization.
This module provides the main pipeline that coordinates input normalization,
the selected binarization algorithm and optional morphological post-processing.
"""

import time
from typing import Dict, Any, Optional, List
import numpy as np
import logging

from .base import BinarizationResult
from .config import PipelineConfig


logger = logging.getLogger(__name__)


class BinarizationPipeline:
	"""
	Main pipeline for document binarization.
	This class orchestrates the complete binarization workflow:
	1. Algorithm lookup and parameter validation
	2. Binarization algorithm application
	3. Post-processing operations (optional)
	The most recent successful result is kept in `last_result`; a failed run
	leaves it untouched.
	Example:
		>>> from docbinarize.core.pipeline import BinarizationPipeline
		>>> from docbinarize.core.config import get_default_config
		>>>
		>>> config = get_default_config()
		>>> config.method = "sauvola"
		>>> config.method_params = {}
		>>> pipeline = BinarizationPipeline(config)
		>>>
		>>> result = pipeline.run(image)
		>>> binary = result['binary_image']
	"""

	def __init__(self, config: Optional[PipelineConfig] = None, catalog=None, morphology=None):
		"""
		Initialize the pipeline.
		Args:
			config: Pipeline configuration
			catalog: AlgorithmCatalog to look methods up in (default: all built-ins)
			morphology: MorphologicalOperations used for post-processing
		"""
		from .config import get_default_config
		from ..methods.registry import create_default_catalog
		from ..postproc.morphology import MorphologicalOperations

		self.config = config or get_default_config()
		self.catalog = catalog if catalog is not None else create_default_catalog()
		self.morphology = morphology or MorphologicalOperations()
		self.last_result: Optional[Dict[str, Any]] = None

		logger.info(f"Initialized pipeline with method: {self.config.method}")

	def run(
		self,
		image: np.ndarray,
		method: Optional[str] = None,
		method_params: Optional[Dict[str, Any]] = None,
		return_intermediates: Optional[bool] = None
	) -> Dict[str, Any]:
		"""
		Run the complete binarization pipeline.
		Args:
			image: Input grayscale or BGR image, never modified
			method: Binarization method to use (overrides config)
			method_params: Method parameters (overrides config)
			return_intermediates: Whether to return intermediate results
				(default: config.save_intermediates)
		Returns:
			Dictionary containing:
				- binary_image: Final binary output
				- method: Method used
				- parameters: Validated parameters used
				- threshold: Representative threshold of the algorithm
				- processing_time: Total time in seconds
				- intermediates: Dict of intermediate results (if requested)
				- metadata: Additional information
		Raises:
			KeyError: If the method is not in the catalog
			ValidationError: If a parameter is invalid or the image is empty
		"""
		start_time = time.time()
		if return_intermediates is None:
			return_intermediates = self.config.save_intermediates
		intermediates = {} if return_intermediates else None

		# Use provided method or fall back to config
		method = method or self.config.method
		if method_params is None:
			method_params = self.config.method_params

		try:
			logger.debug(f"Step 1: Applying {method} binarization")
			algorithm = self.catalog.get(method)
			binarization_result: BinarizationResult = algorithm.binarize(image, **method_params)
			binary_image = binarization_result.binary_image
			if return_intermediates:
				intermediates['binarized'] = binary_image.copy()

			if self.config.post_processing.enabled:
				logger.debug("Step 2: Applying post-processing")
				binary_image = self._apply_post_processing(binary_image)
				if return_intermediates:
					intermediates['post_processed'] = binary_image.copy()

			processing_time = time.time() - start_time

			result = {
				'binary_image': binary_image,
				'method': method,
				'parameters': binarization_result.parameters,
				'threshold': binarization_result.threshold,
				'processing_time': processing_time,
				'metadata': {
					'input_shape': image.shape,
					'output_shape': binary_image.shape,
					'algorithm_metadata': binarization_result.metadata
				}
			}

			if return_intermediates:
				result['intermediates'] = intermediates

			logger.info(f"Pipeline completed in {processing_time:.3f}s")

		except Exception as e:
			logger.error(f"Pipeline failed: {str(e)}", exc_info=True)
			raise

		self.last_result = result
		return result

	def run_batch(
		self,
		images: List[np.ndarray],
		method: Optional[str] = None,
		method_params: Optional[Dict[str, Any]] = None
	) -> List[Dict[str, Any]]:
		"""
		Run pipeline on a batch of images.
		Args:
			images: List of input images
			method: Binarization method to use
			method_params: Method parameters
		Returns:
			List of result dictionaries
		"""
		results = []
		for i, image in enumerate(images):
			logger.info(f"Processing image {i+1}/{len(images)}")
			result = self.run(image, method, method_params)
			results.append(result)
		return results

	def _apply_post_processing(self, binary_image: np.ndarray) -> np.ndarray:
		"""
		Apply the enabled morphological operations in configuration order.
		Args:
			binary_image: Binary image from binarization
		Returns:
			Post-processed binary image
		"""
		result = binary_image.copy()

		for operation, settings in self.config.post_processing.morphology.items():
			settings = settings or {}
			if not settings.get('enabled', False):
				continue
			result = self.morphology.process(
				result,
				operation=operation,
				kernel_size=settings.get('kernel_size', 3),
				kernel_shape=settings.get('kernel_shape', 'rect'),
				iterations=settings.get('iterations', 1)
			)

		return result


def run_pipeline(image: np.ndarray, config: Dict[str, Any], catalog=None) -> Dict[str, Any]:
	"""
	Convenience function to run pipeline with dictionary config.
	Args:
		image: Input image
		config: Configuration dictionary
		catalog: Optional AlgorithmCatalog
	Returns:
		Pipeline result dictionary
	"""
	# Convert dict to PipelineConfig
	if isinstance(config, dict):
		config = PipelineConfig.from_dict(config)

	pipeline = BinarizationPipeline(config, catalog)
	return pipeline.run(image)
