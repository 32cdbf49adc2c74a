"""
Configuration management for the binarization system.
Handles loading, validation, and merging of configuration files.
"""

from dataclasses import dataclass, field, asdict, fields
from typing import Dict, Any, Optional
from pathlib import Path
import yaml
import json
from copy import deepcopy


@dataclass
class PostProcessConfig:
	"""
	Configuration for post-processing operations.
	`morphology` maps an operation name ('opening', 'closing', 'dilation',
	'erosion') to {'enabled', 'kernel_size', 'kernel_shape'}. Enabled
	operations run in mapping order.
	"""
	enabled: bool = False
	morphology: Dict[str, Any] = field(default_factory=dict)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


@dataclass
class PipelineConfig:
	"""Complete pipeline configuration."""
	# Input/output settings
	input_path: Optional[str] = None
	output_path: Optional[str] = None

	# Method selection
	method: str = "otsu_2d"
	method_params: Dict[str, Any] = field(default_factory=dict)

	# Pipeline stages
	post_processing: PostProcessConfig = field(default_factory=PostProcessConfig)

	# Logging
	log_level: str = "INFO"
	save_intermediates: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	@classmethod
	def from_dict(cls, config_dict: Dict[str, Any]) -> 'PipelineConfig':
		"""
		Create PipelineConfig from dictionary.
		Raises:
			ValueError: If the dictionary holds unknown keys
		"""
		config_dict = deepcopy(config_dict or {})

		known = {f.name for f in fields(cls)}
		unknown = sorted(set(config_dict) - known)
		if unknown:
			raise ValueError(f"Unknown configuration keys: {unknown}")

		# Handle nested configs
		if isinstance(config_dict.get('post_processing'), dict):
			config_dict['post_processing'] = PostProcessConfig(**config_dict['post_processing'])

		if config_dict.get('method_params') is None:
			config_dict['method_params'] = {}

		return cls(**config_dict)


class ConfigLoader:
	"""Load and manage configuration files."""

	@staticmethod
	def load_yaml(path: Path) -> Dict[str, Any]:
		"""
		Load configuration from YAML file.
		Args:
			path: Path to YAML file
		Returns:
			Configuration dictionary
		"""
		with open(path, 'r') as f:
			return yaml.safe_load(f) or {}

	@staticmethod
	def load_json(path: Path) -> Dict[str, Any]:
		with open(path, 'r') as f:
			return json.load(f)

	@staticmethod
	def save_yaml(config: Dict[str, Any], path: Path) -> None:
		"""
		Save configuration to YAML file.
		Args:
			config: Configuration dictionary
			path: Output path
		"""
		path = Path(path)
		path.parent.mkdir(parents=True, exist_ok=True)
		with open(path, 'w') as f:
			yaml.dump(config, f, default_flow_style=False, sort_keys=False)

	@staticmethod
	def save_json(config: Dict[str, Any], path: Path) -> None:
		path = Path(path)
		path.parent.mkdir(parents=True, exist_ok=True)
		with open(path, 'w') as f:
			json.dump(config, f, indent=2)

	@classmethod
	def load_config(cls, path: Path) -> PipelineConfig:
		"""
		Load PipelineConfig from file.
		Args:
			path: Path to config file (YAML or JSON)
		Returns:
			PipelineConfig object
		"""
		path = Path(path)

		if path.suffix in ['.yaml', '.yml']:
			config_dict = cls.load_yaml(path)
		elif path.suffix == '.json':
			config_dict = cls.load_json(path)
		else:
			raise ValueError(f"Unsupported config format: {path.suffix}")

		return PipelineConfig.from_dict(config_dict)

	@classmethod
	def merge_configs(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
		"""
		Merge two configuration dictionaries.
		Nested dictionaries are merged recursively; other values in `override`
		replace those in `base`.
		Args:
			base: Base configuration
			override: Override configuration
		Returns:
			Merged configuration
		"""
		result = deepcopy(base)

		for key, value in override.items():
			if key in result and isinstance(result[key], dict) and isinstance(value, dict):
				result[key] = cls.merge_configs(result[key], value)
			else:
				result[key] = deepcopy(value)

		return result


def get_default_config() -> PipelineConfig:
	"""
	Get default pipeline configuration.
	Returns:
		Default PipelineConfig (2D Otsu, post-processing disabled)
	"""
	return PipelineConfig(
		method="otsu_2d",
		method_params={
			"window_radius": 5,
			"epsilon": 0.02,
			"morph_kernel_size": 3,
			"scale": 1.0,
			"noise_reduction": False,
			"adaptive_regions": 1
		},
		post_processing=PostProcessConfig(
			enabled=False,
			morphology={
				"opening": {"enabled": True, "kernel_size": 3, "kernel_shape": "rect"},
				"closing": {"enabled": True, "kernel_size": 3, "kernel_shape": "rect"}
			}
		),
		log_level="INFO"
	)


# Example default configuration as YAML string
DEFAULT_CONFIG_YAML = """
# Default Binarization Pipeline Configuration

# Method selection
method: "otsu_2d"  # Available: otsu, otsu_multi, otsu_local, niblack, sauvola, wolf_jolion, nick, otsu_2d
method_params:
  window_radius: 5
  epsilon: 0.02
  morph_kernel_size: 3
  scale: 1.0
  noise_reduction: false
  adaptive_regions: 1

# Post-processing configuration
post_processing:
  enabled: false
  morphology:
    opening:
      enabled: true
      kernel_size: 3
      kernel_shape: "rect"  # rect, ellipse, cross
    closing:
      enabled: true
      kernel_size: 3
      kernel_shape: "rect"

# Logging
log_level: "INFO"
save_intermediates: false
"""
