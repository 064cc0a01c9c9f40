"""Regression model and validation metrics."""

from .linear_model import LinearRegressionGD
from .metrics import RegressionMetrics, compute_regression_metrics, directional_accuracy

__all__ = ['LinearRegressionGD', 'RegressionMetrics', 'compute_regression_metrics', 'directional_accuracy']
