"""Z-score standardization fitted on training rows only."""

from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

import numpy as np

from .feature_builder import FEATURE_SCHEMA, FeatureRow, rows_to_arrays


@dataclass(frozen=True)
class StandardizationParams:
    """Per-feature mean and standard deviation. Zero deviations are stored as 1."""
    means: Tuple[float, ...]
    std_devs: Tuple[float, ...]

    def __post_init__(self):
        means = tuple(float(m) for m in self.means)
        std_devs = tuple(1.0 if float(s) == 0 else float(s) for s in self.std_devs)

        if len(means) != len(FEATURE_SCHEMA) or len(std_devs) != len(FEATURE_SCHEMA):
            raise ValueError(
                f"Expected {len(FEATURE_SCHEMA)} means and std devs, "
                f"got {len(means)} and {len(std_devs)}"
            )
        if not all(s > 0 for s in std_devs):
            raise ValueError(f"Standard deviations must be positive: {std_devs}")

        object.__setattr__(self, 'means', means)
        object.__setattr__(self, 'std_devs', std_devs)

    def transform(self, X: np.ndarray) -> np.ndarray:
        """Standardize a feature vector or matrix."""
        return (np.asarray(X, dtype=float) - np.array(self.means)) / np.array(self.std_devs)


class Standardizer:
    """Fit standardization params on a reference row set and apply them to any rows."""

    def fit(self, rows: Sequence[FeatureRow]) -> StandardizationParams:
        if not rows:
            raise ValueError("Cannot fit standardization on an empty row set")

        X, _ = rows_to_arrays(rows)
        means = X.mean(axis=0)
        std_devs = X.std(axis=0)

        # Constant columns: pin mean to the value itself so z-scores are exactly 0
        constant = np.ptp(X, axis=0) == 0
        means[constant] = X[0, constant]
        std_devs[constant] = 0.0

        return StandardizationParams(means=tuple(means), std_devs=tuple(std_devs))

    def apply(self, rows: Sequence[FeatureRow], params: StandardizationParams) -> List[FeatureRow]:
        """Return new rows with every feature z-scored by ``params``. Never refits."""
        if not rows:
            return []

        X, _ = rows_to_arrays(rows)
        Z = params.transform(X)
        return [
            replace(row, features=tuple(float(v) for v in z))
            for row, z in zip(rows, Z)
        ]
