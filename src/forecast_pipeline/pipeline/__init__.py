"""Training and prediction workflows."""

from .trainer import Trainer, TrainResult
from .predictor import Predictor, PredictionResult, compound_return
from .service import ForecastPipeline

__all__ = ['Trainer', 'TrainResult', 'Predictor', 'PredictionResult', 'compound_return', 'ForecastPipeline']
