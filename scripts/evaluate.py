#!/usr/bin/env python3
"""
CLI for evaluation.
Usage:
	python scripts/evaluate.py result.png ground_truth.png
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docbinarize.core.exceptions import DimensionMismatchError
from docbinarize.evaluation.metrics import MetricsCalculator
from docbinarize.utils.image import imread


def main(argv: Optional[List[str]] = None) -> int:
	parser = argparse.ArgumentParser(description="Evaluate binarization results")
	parser.add_argument("pred", help="Path to predicted binary image")
	parser.add_argument("gt", help="Path to ground truth image")
	parser.add_argument("--json", action="store_true", help="Print metrics as JSON")
	args = parser.parse_args(argv)

	try:
		prediction = imread(args.pred)
		ground_truth = imread(args.gt)
		metrics = MetricsCalculator().compute_all(prediction, ground_truth)
	except (IOError, DimensionMismatchError) as e:
		print(f"Error: {e}")
		return 1

	if args.json:
		print(json.dumps(metrics.to_dict(), indent=2))
		return 0

	print(f"PSNR:      {metrics.psnr:.2f} dB")
	print(f"SSIM:      {metrics.ssim:.4f}")
	print(f"F-measure: {metrics.f1_score:.4f}")
	print(f"Precision: {metrics.precision:.4f}")
	print(f"Recall:    {metrics.recall:.4f}")
	print(f"IoU:       {metrics.iou:.4f}")
	return 0


if __name__ == "__main__":
	sys.exit(main())
