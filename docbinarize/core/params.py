"""
Typed parameter schemas for binarization algorithms.
Parameters cross the catalog boundary as a loosely typed name -> value map in
which every number may arrive as a float. Each algorithm declares a
ParameterSchema; the schema coerces and range-checks the raw map and builds the
algorithm's frozen parameter dataclass before any pixel is touched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type
import math
import numbers

from .exceptions import ValidationError


class ParamType(Enum):
	"""Value kinds a parameter can carry."""
	INT = "int"
	FLOAT = "float"
	BOOL = "bool"
	ENUM = "enum"


@dataclass(frozen=True)
class ParameterSpec:
	"""
	Description of a single algorithm parameter.
	Attributes:
		name: Parameter name used in the transport map
		type: Value kind
		default: Default value (already of the right Python type)
		description: Human-readable description
		min: Inclusive lower bound for numeric kinds
		max: Inclusive upper bound for numeric kinds
		options: Allowed values for the enum kind
		odd: Integer value must be odd
	"""
	name: str
	type: ParamType
	default: Any
	description: str = ""
	min: Optional[float] = None
	max: Optional[float] = None
	options: Tuple[str, ...] = ()
	odd: bool = False

	def coerce(self, value: Any) -> Any:
		"""
		Convert a transported value into this parameter's Python type.
		Args:
			value: Raw value from the parameter map
		Returns:
			Coerced and range-checked value
		Raises:
			ValidationError: If the value has the wrong kind or is out of range
		"""
		if self.type is ParamType.BOOL:
			if not isinstance(value, bool):
				raise ValidationError(f"{self.name} must be a bool, got {value!r}")
			return bool(value)

		if self.type is ParamType.ENUM:
			if not isinstance(value, str) or value not in self.options:
				raise ValidationError(
					f"{self.name} must be one of {list(self.options)}, got {value!r}"
				)
			return value

		# Numeric kinds; bool is an int subclass and is not a number here
		if isinstance(value, bool) or not isinstance(value, numbers.Real):
			raise ValidationError(f"{self.name} must be a number, got {value!r}")
		if not math.isfinite(float(value)):
			raise ValidationError(f"{self.name} must be finite, got {value!r}")

		if self.min is not None and value < self.min:
			raise ValidationError(self._range_message(value))
		if self.max is not None and value > self.max:
			raise ValidationError(self._range_message(value))

		if self.type is ParamType.INT:
			coerced = int(value)
			if self.odd and coerced % 2 == 0:
				raise ValidationError(f"{self.name} must be odd, got {coerced}")
			return coerced

		return float(value)

	def _range_message(self, value: Any) -> str:
		return f"{self.name} must be between {self.min} and {self.max}, got {value}"

	def to_dict(self) -> Dict[str, Any]:
		"""Describe the parameter for an orchestrating application."""
		return {
			'name': self.name,
			'type': self.type.value,
			'min': self.min,
			'max': self.max,
			'default': self.default,
			'description': self.description,
			'options': list(self.options),
		}


class ParameterSchema:
	"""
	Ordered collection of ParameterSpec entries bound to a parameter dataclass.
	Example:
		>>> schema = ParameterSchema(NiblackParams, [
		...     ParameterSpec('window_size', ParamType.INT, 15, min=3, max=101),
		...     ParameterSpec('k', ParamType.FLOAT, -0.2, min=-1.0, max=1.0),
		... ])
		>>> schema.parse({'window_size': 25.0})
		NiblackParams(window_size=25, k=-0.2)
	"""
	def __init__(self, params_class: Type, specs: List[ParameterSpec]):
		self.params_class = params_class
		self.specs = tuple(specs)

	def names(self) -> List[str]:
		return [spec.name for spec in self.specs]

	def defaults(self) -> Dict[str, Any]:
		"""Return a name -> default value map."""
		return {spec.name: spec.default for spec in self.specs}

	def ranges(self) -> Dict[str, Tuple[Any, Any]]:
		"""Return (min, max) tuples for numeric parameters."""
		return {
			spec.name: (spec.min, spec.max)
			for spec in self.specs
			if spec.type in (ParamType.INT, ParamType.FLOAT)
		}

	def describe(self) -> List[Dict[str, Any]]:
		return [spec.to_dict() for spec in self.specs]

	def parse(self, raw: Optional[Mapping[str, Any]] = None):
		"""
		Validate a raw parameter map and build the typed parameter object.
		Args:
			raw: Loosely typed parameter map; missing names take defaults
		Returns:
			Instance of params_class
		Raises:
			ValidationError: On unknown names or invalid values
		"""
		raw = dict(raw or {})
		known = set(self.names())
		unknown = sorted(set(raw) - known)
		if unknown:
			raise ValidationError(
				f"Unknown parameter(s) {unknown}. Expected: {sorted(known)}"
			)

		values = {}
		for spec in self.specs:
			if spec.name in raw and raw[spec.name] is not None:
				values[spec.name] = spec.coerce(raw[spec.name])
			else:
				values[spec.name] = spec.default

		return self.params_class(**values)
