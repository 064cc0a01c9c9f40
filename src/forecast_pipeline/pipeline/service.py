"""Public entry points used by schedulers, CLIs and HTTP handlers."""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..data.candle_source import CandleSource, FileCandleSource
from ..storage.model_store import FileModelStore, ModelStore, TrainedModel
from ..utils.config import DEFAULT_ASSETS, DEFAULT_TIMEFRAME, TrainingConfig
from .predictor import PredictionResult, Predictor
from .trainer import TrainResult, Trainer

logger = logging.getLogger(__name__)


class ForecastPipeline:
    """
    Wires one candle source and one model store into a trainer and a predictor.

    Construct once per process and share; calls hold no mutable state
    between them.

    Usage:
        pipeline = ForecastPipeline.from_directories()
        pipeline.train_model('BTC-USD', '1h')
        pipeline.predict('BTC-USD', 24)
    """

    def __init__(self, candle_source: CandleSource, model_store: ModelStore,
                 config: Optional[TrainingConfig] = None):
        self.candle_source = candle_source
        self.model_store = model_store
        self.trainer = Trainer(candle_source, model_store, config=config)
        self.predictor = Predictor(candle_source, model_store)

    @classmethod
    def from_directories(cls, candles_dir: Optional[Path] = None,
                         model_runs_dir: Optional[Path] = None,
                         predictions_dir: Optional[Path] = None) -> 'ForecastPipeline':
        """File-backed pipeline; unset directories fall back to config defaults."""
        return cls(
            FileCandleSource(candles_dir),
            FileModelStore(model_runs_dir, predictions_dir),
        )

    def train_model(self, asset: str, timeframe: str) -> TrainResult:
        return self.trainer.train(asset, timeframe)

    def train_all(self, assets: Optional[Iterable[str]] = None,
                  timeframe: str = DEFAULT_TIMEFRAME) -> Dict[str, TrainResult]:
        """Train each asset in turn. The first failure propagates."""
        results = {}
        for asset in (assets if assets is not None else DEFAULT_ASSETS):
            results[asset] = self.train_model(asset, timeframe)
        logger.info(f"Trained {len(results)} models for timeframe {timeframe}")
        return results

    def predict(self, asset: str, horizon: int) -> PredictionResult:
        return self.predictor.predict(asset, horizon)

    def list_models(self, asset: str) -> List[TrainedModel]:
        """All persisted models for ``asset``, oldest first."""
        return [self.model_store.load(key) for key in self.model_store.list_keys(asset)]
