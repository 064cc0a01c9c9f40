"""Validation metrics for return regressors."""

from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error


@dataclass(frozen=True)
class RegressionMetrics:
    mae: float
    rmse: float
    directional_accuracy: float  # Fraction of rows where sign(pred) == sign(actual)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def directional_accuracy(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Share of predictions whose sign matches the realized sign (0 only matches 0)."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.mean(np.sign(y_true) == np.sign(y_pred)))


def compute_regression_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> RegressionMetrics:
    if len(y_true) == 0:
        raise ValueError("Cannot compute metrics on an empty validation set")

    return RegressionMetrics(
        mae=float(mean_absolute_error(y_true, y_pred)),
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        directional_accuracy=directional_accuracy(y_true, y_pred),
    )
