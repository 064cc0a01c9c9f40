"""Custom exceptions for the forecasting pipeline.

Every error raised by feature building, training, storage and prediction
derives from ForecastError so callers can catch the whole family at once.
"""


class ForecastError(Exception):
    """Base exception for all forecasting pipeline errors."""


class DatasetTooSmallError(ForecastError):
    """Raised when there are too few candles or feature rows to train on."""


class NoModelFoundError(ForecastError):
    """Raised when no trained model exists for the requested asset."""


class InsufficientHistoryError(ForecastError):
    """Raised when too few candles are available to build a prediction vector."""


class InvalidHorizonError(ForecastError):
    """Raised when a prediction horizon is not an integer >= 1."""


class FeatureSchemaMismatchError(ForecastError):
    """Raised when a persisted model was trained on a different feature schema."""


class CandleDataError(ForecastError):
    """Raised when candle data is malformed."""


class CandleDataNotFoundError(CandleDataError):
    """Raised when no candle data exists for an asset/timeframe."""


class ModelStoreError(ForecastError):
    """Base exception for model store failures."""


class ArtifactExistsError(ModelStoreError):
    """Raised when saving would overwrite an existing artifact."""
