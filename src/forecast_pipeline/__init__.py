"""Candle-based linear forecasting pipeline."""

from .exceptions import (
    ForecastError,
    DatasetTooSmallError,
    NoModelFoundError,
    InsufficientHistoryError,
    InvalidHorizonError,
)
from .pipeline import ForecastPipeline, Trainer, Predictor, TrainResult, PredictionResult

__version__ = "0.1.0"

__all__ = [
    'ForecastPipeline', 'Trainer', 'Predictor', 'TrainResult', 'PredictionResult',
    'ForecastError', 'DatasetTooSmallError', 'NoModelFoundError',
    'InsufficientHistoryError', 'InvalidHorizonError',
]
