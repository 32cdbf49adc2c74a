"""
Tests for the command-line scripts.
"""

import importlib.util
import json
from pathlib import Path

import pytest
import numpy as np
import cv2

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def load_script(name):
	spec = importlib.util.spec_from_file_location(f"{name}_cli", SCRIPTS_DIR / f"{name}.py")
	module = importlib.util.module_from_spec(spec)
	spec.loader.exec_module(module)
	return module


@pytest.fixture(scope="module")
def binarize_cli():
	return load_script("binarize")


@pytest.fixture(scope="module")
def evaluate_cli():
	return load_script("evaluate")


@pytest.fixture
def page_file(tmp_path, text_image):
	path = tmp_path / "page.png"
	cv2.imwrite(str(path), text_image)
	return path


class TestBinarizeCli:
	"""Test suite for scripts/binarize.py."""

	def test_parse_params(self, binarize_cli):
		params = binarize_cli.parse_params(['window_size=25', 'k=-0.3', 'interpolation=false', 'mode=fast'])
		assert params == {'window_size': 25.0, 'k': -0.3, 'interpolation': False, 'mode': 'fast'}

	def test_parse_params_requires_equals(self, binarize_cli):
		with pytest.raises(ValueError):
			binarize_cli.parse_params(['window_size'])

	def test_list_methods(self, binarize_cli, capsys):
		assert binarize_cli.main(['--list-methods']) == 0
		out = capsys.readouterr().out
		for name in ('otsu', 'otsu_2d', 'sauvola', 'nick'):
			assert name in out

	def test_single_image(self, binarize_cli, page_file, tmp_path, capsys):
		output = tmp_path / "out" / "page_binary.png"

		code = binarize_cli.main([
			'--input', str(page_file), '--output', str(output),
			'--method', 'sauvola', '--param', 'window_size=21', '--show-threshold'
		])

		assert code == 0
		binary = cv2.imread(str(output), cv2.IMREAD_GRAYSCALE)
		assert set(np.unique(binary)).issubset({0, 255})

	def test_invalid_param_rejected_before_io(self, binarize_cli, tmp_path, capsys):
		output = tmp_path / "never.png"

		code = binarize_cli.main([
			'--input', str(tmp_path / "missing.png"), '--output', str(output),
			'--method', 'sauvola', '--param', 'k=5'
		])

		assert code == 1
		assert "must be between" in capsys.readouterr().out
		assert not output.exists()

	def test_missing_output(self, binarize_cli, page_file):
		assert binarize_cli.main(['--input', str(page_file)]) == 1

	def test_batch(self, binarize_cli, tmp_path, text_image):
		input_dir = tmp_path / "in"
		input_dir.mkdir()
		for name in ("a.png", "b.png"):
			cv2.imwrite(str(input_dir / name), text_image)
		output_dir = tmp_path / "results"

		code = binarize_cli.main(['--input-dir', str(input_dir), '--output-dir', str(output_dir), '-m', 'otsu'])

		assert code == 0
		assert sorted(p.name for p in output_dir.iterdir()) == ["a_binary.png", "b_binary.png"]

	def test_config_file(self, binarize_cli, tmp_path):
		config_path = tmp_path / "config.yaml"
		config_path.write_text("method: niblack\nmethod_params:\n  window_size: 31\n")
		args = binarize_cli.parse_args(['--config', str(config_path), '--param', 'k=-0.4'])

		config = binarize_cli.build_config(args)

		assert config.method == "niblack"
		assert config.method_params == {'window_size': 31, 'k': -0.4}

	def test_method_override_drops_config_params(self, binarize_cli):
		config = binarize_cli.build_config(binarize_cli.parse_args(['--method', 'otsu']))
		assert config.method == "otsu"
		assert config.method_params == {}


class TestEvaluateCli:
	"""Test suite for scripts/evaluate.py."""

	def test_json_output(self, evaluate_cli, tmp_path, text_image, capsys):
		binary = np.where(text_image < 128, 0, 255).astype(np.uint8)
		path = tmp_path / "gt.png"
		cv2.imwrite(str(path), binary)

		assert evaluate_cli.main([str(path), str(path), '--json']) == 0

		metrics = json.loads(capsys.readouterr().out)
		assert metrics['psnr'] == 100.0
		assert metrics['f1_score'] == 1.0

	def test_shape_mismatch(self, evaluate_cli, tmp_path, capsys):
		a = tmp_path / "a.png"
		b = tmp_path / "b.png"
		cv2.imwrite(str(a), np.zeros((10, 10), np.uint8))
		cv2.imwrite(str(b), np.zeros((12, 10), np.uint8))

		assert evaluate_cli.main([str(a), str(b)]) == 1
		assert "do not match" in capsys.readouterr().out
