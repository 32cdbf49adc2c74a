#!/usr/bin/env python3
"""
Command-line interface for document binarization.
Usage:
	python scripts/binarize.py --method sauvola --input doc.jpg --output result.png
	python scripts/binarize.py --method otsu_2d --input-dir images/ --output-dir results/
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docbinarize.core.config import ConfigLoader, PipelineConfig, get_default_config
from docbinarize.core.pipeline import BinarizationPipeline
from docbinarize.methods.registry import AlgorithmCatalog, create_default_catalog
from docbinarize.utils.image import imread, imsave, list_images
from docbinarize.utils.logger import get_logger


def parse_args(argv: Optional[List[str]] = None):
	"""Parse command line arguments."""
	parser = argparse.ArgumentParser(
		description='Document Image Binarization Tool',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  # Single image with 2D Otsu
  %(prog)s --input document.jpg --output result.png

  # Batch processing
  %(prog)s --method sauvola --input-dir images/ --output-dir results/

  # With specific parameters
  %(prog)s --method niblack --input doc.jpg --output result.png --param window_size=25 --param k=-0.3

  # Using config file
  %(prog)s --config config.yaml --input doc.jpg --output result.png

  # List available methods
  %(prog)s --list-methods
		"""
	)

	# Input/output
	parser.add_argument('-i', '--input', type=str, help='Input image path')
	parser.add_argument('-o', '--output', type=str, help='Output image path')
	parser.add_argument('--input-dir', type=str, help='Input directory for batch processing')
	parser.add_argument('--output-dir', type=str, help='Output directory for batch processing')

	# Method selection
	parser.add_argument('-m', '--method', type=str, help='Binarization method (default: from config, otsu_2d)')
	parser.add_argument('--list-methods', action='store_true', help='List all available methods and exit')
	parser.add_argument(
		'-p', '--param', action='append', default=[], metavar='NAME=VALUE',
		help='Method parameter, repeatable (numbers and true/false are converted)'
	)

	# Configuration
	parser.add_argument('-c', '--config', type=str, help='Configuration file (YAML or JSON)')
	parser.add_argument('--no-postprocess', action='store_true', help='Disable post-processing')

	# Output options
	parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
	parser.add_argument('--show-threshold', action='store_true', help='Print computed threshold value')

	return parser.parse_args(argv)


def parse_param_value(text: str) -> Any:
	"""Convert a command-line value: true/false to bool, numbers to float, else the string."""
	lowered = text.strip().lower()
	if lowered in ('true', 'false'):
		return lowered == 'true'
	try:
		return float(text)
	except ValueError:
		return text


def parse_params(pairs: List[str]) -> Dict[str, Any]:
	"""
	Parse repeated NAME=VALUE arguments.
	Raises:
		ValueError: If an entry has no '='
	"""
	params = {}
	for pair in pairs:
		if '=' not in pair:
			raise ValueError(f"Parameter must be NAME=VALUE, got '{pair}'")
		name, value = pair.split('=', 1)
		params[name.strip()] = parse_param_value(value)
	return params


def list_methods_info(catalog: AlgorithmCatalog):
	"""Print information about all available methods."""
	print("\n" + "="*60)
	print("Available Binarization Methods")
	print("="*60 + "\n")

	for method_name in catalog.list_algorithms():
		info = catalog.describe(method_name)
		print(f"• {method_name}")
		print(f"  Description: {info['description']}")
		print(f"  Category: {info['category']}")

		for spec in info['parameter_schema']:
			bounds = ''
			if spec['min'] is not None and spec['max'] is not None:
				bounds = f" [{spec['min']}, {spec['max']}]"
			print(f"    - {spec['name']} ({spec['type']}{bounds}) = {spec['default']}: {spec['description']}")

		print()


def build_config(args) -> PipelineConfig:
	"""Load or create the pipeline configuration and apply command-line overrides."""
	if args.config:
		config = ConfigLoader.load_config(Path(args.config))
	else:
		config = get_default_config()

	if args.method and args.method != config.method:
		# Configured parameters belong to the configured method
		config.method = args.method
		config.method_params = {}

	config.method_params = ConfigLoader.merge_configs(config.method_params, parse_params(args.param))

	if args.no_postprocess:
		config.post_processing.enabled = False

	return config


def process_single_image(
	input_path: Path,
	output_path: Path,
	pipeline: BinarizationPipeline,
	verbose: bool = False
) -> dict:
	"""
	Process a single image.
	Args:
		input_path: Input image path
		output_path: Output image path
		pipeline: Configured pipeline
		verbose: Print verbose output
	Returns:
		Result dictionary
	"""
	if verbose:
		print(f"Processing: {input_path.name}")

	try:
		image = imread(input_path)
		result = pipeline.run(image)
		imsave(output_path, result['binary_image'])

		if verbose:
			print(f"  ✓ Saved to: {output_path}")
			print(f"  Threshold: {result['threshold']:.1f}")
			print(f"  Time: {result['processing_time']:.4f}s")

		return {
			'input': str(input_path),
			'output': str(output_path),
			'method': result['method'],
			'threshold': result['threshold'],
			'time': result['processing_time'],
			'success': True
		}

	except (IOError, ValueError, KeyError) as e:
		print(f"Error processing {input_path}: {e}")
		return {
			'input': str(input_path),
			'success': False,
			'error': str(e)
		}


def process_batch(
	input_dir: Path,
	output_dir: Path,
	pipeline: BinarizationPipeline,
	verbose: bool = False
) -> List[dict]:
	"""
	Process all images in a directory.
	Returns:
		List of result dictionaries
	"""
	image_paths = list_images(input_dir)

	if not image_paths:
		print(f"No images found in {input_dir}")
		return []

	print(f"\nFound {len(image_paths)} images")
	print(f"Processing with method: {pipeline.config.method}")
	print("-" * 60)

	results = []
	start_time = time.time()

	for i, input_path in enumerate(image_paths, 1):
		if verbose:
			print(f"\n[{i}/{len(image_paths)}] ", end='')

		output_path = output_dir / f"{input_path.stem}_binary.png"
		results.append(process_single_image(input_path, output_path, pipeline, verbose))

	total_time = time.time() - start_time

	# Summary
	print("\n" + "="*60)
	print("Summary")
	print("="*60)
	successful = sum(1 for r in results if r.get('success', False))
	print(f"Processed: {successful}/{len(image_paths)} images")
	print(f"Total time: {total_time:.2f}s")
	print(f"Average time: {total_time/len(image_paths):.4f}s per image")

	if successful > 0:
		avg_threshold = np.mean([r['threshold'] for r in results if r.get('success') and r['threshold'] is not None])
		print(f"Average threshold: {avg_threshold:.1f}")

	return results


def main(argv: Optional[List[str]] = None) -> int:
	"""Main entry point."""
	args = parse_args(argv)
	catalog = create_default_catalog()

	# List methods and exit
	if args.list_methods:
		list_methods_info(catalog)
		return 0

	# Validate input
	if not args.input and not args.input_dir:
		print("Error: Either --input or --input-dir must be specified")
		return 1

	if args.input and not args.output:
		print("Error: --output must be specified with --input")
		return 1

	if args.input_dir and not args.output_dir:
		print("Error: --output-dir must be specified with --input-dir")
		return 1

	try:
		config = build_config(args)
		get_logger("docbinarize", logging.DEBUG if args.verbose else config.log_level)

		# Reject bad parameters before reading any image
		catalog.validate(config.method, config.method_params)
		pipeline = BinarizationPipeline(config, catalog)

		if args.input:
			# Single image
			input_path = Path(args.input)
			output_path = Path(args.output)

			if not input_path.exists():
				print(f"Error: Input file not found: {input_path}")
				return 1

			result = process_single_image(
				input_path,
				output_path,
				pipeline,
				args.verbose
			)

			if result.get('success'):
				if args.show_threshold and result['threshold'] is not None:
					print(f"\nComputed threshold: {result['threshold']:.1f}")
				return 0
			return 1

		# Batch processing
		input_dir = Path(args.input_dir)
		output_dir = Path(args.output_dir)

		if not input_dir.exists():
			print(f"Error: Input directory not found: {input_dir}")
			return 1

		results = process_batch(input_dir, output_dir, pipeline, args.verbose)

		# Check if any failed
		failed = sum(1 for r in results if not r.get('success', False))
		return 1 if failed > 0 else 0

	except KeyboardInterrupt:
		print("\n\nInterrupted by user")
		return 130
	except (ValueError, KeyError, IOError) as e:
		print(f"\nError: {e}")
		if args.verbose:
			import traceback
			traceback.print_exc()
		return 1


if __name__ == '__main__':
	sys.exit(main())
