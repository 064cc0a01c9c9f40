"""Linear regressor fitted by full-batch gradient descent."""

import logging
from typing import Any, Dict, Optional, Sequence

import numpy as np

from ..utils.config import CONFIG

logger = logging.getLogger(__name__)


class LinearRegressionGD:
    """
    Ordinary least squares via batch gradient descent on mean squared error.

    Runs a fixed number of iterations with a fixed learning rate and no
    early stopping, so identical inputs always produce identical weights.
    """

    LOG_EVERY = 500

    def __init__(self, iterations: int = CONFIG.ITERATIONS,
                 learning_rate: float = CONFIG.LEARNING_RATE):
        self.iterations = iterations
        self.learning_rate = learning_rate
        self.weights: Optional[np.ndarray] = None
        self.bias: float = 0.0
        self.is_trained = False

    @classmethod
    def from_params(cls, weights: Sequence[float], bias: float) -> 'LinearRegressionGD':
        """Rebuild a fitted model from persisted weights and bias."""
        model = cls()
        model.weights = np.asarray(weights, dtype=float)
        model.bias = float(bias)
        model.is_trained = True
        return model

    def train(self, X: np.ndarray, y: np.ndarray) -> Dict[str, Any]:
        """
        Fit weights and bias.

        Args:
            X: Standardized feature matrix, shape (n_samples, n_features)
            y: Targets, shape (n_samples,)

        Returns:
            Dictionary with training metrics
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        n_samples, n_features = X.shape
        if n_samples == 0:
            raise ValueError("Cannot train on an empty dataset")

        weights = np.zeros(n_features)
        bias = 0.0

        for iteration in range(self.iterations):
            error = X @ weights + bias - y

            # w_j -= lr * 2 * mean(error * x_j); b -= lr * 2 * mean(error)
            weights = weights - self.learning_rate * 2 * (X.T @ error) / n_samples
            bias -= self.learning_rate * 2 * error.sum() / n_samples

            if logger.isEnabledFor(logging.DEBUG) and iteration % self.LOG_EVERY == 0:
                logger.debug(f"iter {iteration}: train mse={float(np.mean(error ** 2)):.6e}")

        self.weights = weights
        self.bias = float(bias)
        self.is_trained = True

        train_mse = float(np.mean((self.predict_batch(X) - y) ** 2))
        return {
            'train_mse': train_mse,
            'n_samples': n_samples,
            'n_features': n_features,
            'iterations': self.iterations,
        }

    def predict_batch(self, X: np.ndarray) -> np.ndarray:
        """Predict on a batch of standardized rows."""
        if not self.is_trained:
            raise ValueError("Model not trained yet")
        return np.asarray(X, dtype=float) @ self.weights + self.bias

    def predict_one(self, x: np.ndarray) -> float:
        """Predict for a single standardized feature vector."""
        return float(self.predict_batch(np.asarray(x, dtype=float).reshape(1, -1))[0])
