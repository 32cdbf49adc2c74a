"""
Unit tests for parameter specs and schemas.
"""

from dataclasses import dataclass

import pytest
import numpy as np

from docbinarize.core.params import ParameterSchema, ParameterSpec, ParamType
from docbinarize.core.exceptions import ValidationError


@dataclass(frozen=True)
class ExampleParams:
	size: int = 15
	k: float = 0.5
	smooth: bool = True
	mode: str = "fast"


@pytest.fixture
def schema():
	return ParameterSchema(ExampleParams, [
		ParameterSpec('size', ParamType.INT, 15, min=3, max=101, odd=True),
		ParameterSpec('k', ParamType.FLOAT, 0.5, min=0.0, max=1.0),
		ParameterSpec('smooth', ParamType.BOOL, True),
		ParameterSpec('mode', ParamType.ENUM, "fast", options=("fast", "exact")),
	])


class TestParameterSpec:
	"""Coercion rules of a single parameter."""

	def test_int_accepts_integral_float(self):
		spec = ParameterSpec('size', ParamType.INT, 15, min=3, max=101)
		value = spec.coerce(25.0)
		assert value == 25
		assert isinstance(value, int)

	def test_int_truncates_fractional_float(self):
		spec = ParameterSpec('size', ParamType.INT, 15, min=3, max=101)
		assert spec.coerce(25.7) == 25

	@pytest.mark.parametrize("value", [True, "25", None, [25]])
	def test_int_rejects_non_numbers(self, value):
		spec = ParameterSpec('size', ParamType.INT, 15, min=3, max=101)
		with pytest.raises(ValidationError):
			spec.coerce(value)

	def test_float_accepts_int(self):
		spec = ParameterSpec('k', ParamType.FLOAT, 0.5, min=0.0, max=1.0)
		value = spec.coerce(1)
		assert value == 1.0
		assert isinstance(value, float)

	@pytest.mark.parametrize("value", [-0.01, 1.01, float('nan'), float('inf')])
	def test_float_rejects_out_of_range(self, value):
		spec = ParameterSpec('k', ParamType.FLOAT, 0.5, min=0.0, max=1.0)
		with pytest.raises(ValidationError):
			spec.coerce(value)

	@pytest.mark.parametrize("value", [np.float32('nan'), np.float32('inf'), np.float64('-inf')])
	@pytest.mark.parametrize("kind, bounds", [
		(ParamType.INT, (3, 101)),
		(ParamType.FLOAT, (0.0, 1.0)),
		(ParamType.FLOAT, (None, None)),
	])
	def test_numpy_non_finite_rejected(self, value, kind, bounds):
		spec = ParameterSpec('x', kind, 5, min=bounds[0], max=bounds[1])
		with pytest.raises(ValidationError, match="must be finite"):
			spec.coerce(value)

	def test_numpy_scalars_coerced_to_python(self):
		int_value = ParameterSpec('size', ParamType.INT, 15, min=3, max=101).coerce(np.float32(25.0))
		float_value = ParameterSpec('k', ParamType.FLOAT, 0.5, min=0.0, max=1.0).coerce(np.int64(1))
		assert int_value == 25 and type(int_value) is int
		assert float_value == 1.0 and type(float_value) is float

	@pytest.mark.parametrize("value", [0.0, 1.0])
	def test_bounds_are_inclusive(self, value):
		spec = ParameterSpec('k', ParamType.FLOAT, 0.5, min=0.0, max=1.0)
		assert spec.coerce(value) == value

	def test_bool_accepts_only_bool(self):
		spec = ParameterSpec('smooth', ParamType.BOOL, True)
		assert spec.coerce(False) is False
		with pytest.raises(ValidationError):
			spec.coerce(1)

	def test_enum_membership(self):
		spec = ParameterSpec('mode', ParamType.ENUM, "fast", options=("fast", "exact"))
		assert spec.coerce("exact") == "exact"
		with pytest.raises(ValidationError):
			spec.coerce("slow")

	def test_odd_constraint(self):
		spec = ParameterSpec('size', ParamType.INT, 3, min=1, max=15, odd=True)
		assert spec.coerce(5.0) == 5
		with pytest.raises(ValidationError, match="odd"):
			spec.coerce(4)

	def test_to_dict(self):
		spec = ParameterSpec('k', ParamType.FLOAT, 0.5, description="weight", min=0.0, max=1.0)
		info = spec.to_dict()
		assert info['name'] == 'k'
		assert info['type'] == 'float'
		assert (info['min'], info['max'], info['default']) == (0.0, 1.0, 0.5)
		assert info['description'] == "weight"


class TestParameterSchema:
	"""Schema-level parsing."""

	def test_defaults(self, schema):
		assert schema.parse() == ExampleParams()
		assert schema.defaults() == {'size': 15, 'k': 0.5, 'smooth': True, 'mode': 'fast'}

	def test_parse_partial_map(self, schema):
		params = schema.parse({'size': 31.0, 'k': 0.25})
		assert params == ExampleParams(size=31, k=0.25)

	def test_none_takes_default(self, schema):
		assert schema.parse({'k': None}).k == 0.5

	def test_unknown_name_rejected(self, schema):
		with pytest.raises(ValidationError, match="Unknown parameter"):
			schema.parse({'sizee': 15})

	def test_result_is_frozen(self, schema):
		params = schema.parse({})
		with pytest.raises(Exception):
			params.size = 3

	def test_ranges_cover_numeric_params(self, schema):
		assert schema.ranges() == {'size': (3, 101), 'k': (0.0, 1.0)}

	def test_describe(self, schema):
		names = [entry['name'] for entry in schema.describe()]
		assert names == ['size', 'k', 'smooth', 'mode']
