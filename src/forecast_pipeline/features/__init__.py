"""Feature engineering and standardization."""

from .feature_builder import FEATURE_SCHEMA, FeatureBuilder, FeatureRow, rows_to_arrays
from .standardizer import Standardizer, StandardizationParams

__all__ = [
    'FEATURE_SCHEMA', 'FeatureBuilder', 'FeatureRow', 'rows_to_arrays',
    'Standardizer', 'StandardizationParams',
]
