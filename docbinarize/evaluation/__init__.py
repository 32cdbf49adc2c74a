"""Evaluation utilities for binarization."""
from .metrics import ImageMetrics, MetricsCalculator, EvaluationMetrics, compute_metrics

__all__ = ["ImageMetrics", "MetricsCalculator", "EvaluationMetrics", "compute_metrics"]
