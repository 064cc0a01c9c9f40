"""Train a per-(asset, timeframe) linear return model and persist it."""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from ..data.candle_source import CandleSource
from ..features.feature_builder import FEATURE_SCHEMA, FeatureBuilder, rows_to_arrays
from ..features.standardizer import Standardizer
from ..models.linear_model import LinearRegressionGD
from ..models.metrics import RegressionMetrics, compute_regression_metrics
from ..storage.model_store import ModelStore, TrainedModel
from ..utils.config import CONFIG, TrainingConfig
from ..utils.helpers import make_artifact_id, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainResult:
    """Summary of a completed training run."""
    run_id: str
    asset: str
    timeframe: str
    sample_count: int
    split_index: int
    feature_count: int
    metrics: RegressionMetrics
    model_path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Trainer:
    """
    Fit and persist one model per call.

    Steps: fetch candles, build rows, split 80/20 chronologically, fit the
    standardizer on the training prefix only, run gradient descent, score
    the validation suffix, persist. Any failure aborts the run; nothing is
    written unless the whole run succeeds.
    """

    def __init__(self, candle_source: CandleSource, model_store: ModelStore,
                 feature_builder: Optional[FeatureBuilder] = None,
                 standardizer: Optional[Standardizer] = None,
                 config: Optional[TrainingConfig] = None):
        self.candle_source = candle_source
        self.model_store = model_store
        self.feature_builder = feature_builder or FeatureBuilder()
        self.standardizer = standardizer or Standardizer()
        self.config = config or CONFIG

    def train(self, asset: str, timeframe: str) -> TrainResult:
        candles = self.candle_source.fetch_candles(asset, timeframe)
        dataset = self.feature_builder.build_rows(candles)

        # Forward-chaining split, never shuffled
        split_index = int(len(dataset) * self.config.TRAIN_FRACTION)
        train_rows = dataset[:split_index]
        val_rows = dataset[split_index:]
        logger.info(
            f"Training {asset}/{timeframe}: {len(candles)} candles, {len(dataset)} rows "
            f"(train={len(train_rows)}, val={len(val_rows)})"
        )

        params = self.standardizer.fit(train_rows)
        X_train, y_train = rows_to_arrays(self.standardizer.apply(train_rows, params))
        X_val, y_val = rows_to_arrays(self.standardizer.apply(val_rows, params))

        model = LinearRegressionGD(
            iterations=self.config.ITERATIONS,
            learning_rate=self.config.LEARNING_RATE,
        )
        train_stats = model.train(X_train, y_train)
        metrics = compute_regression_metrics(y_val, model.predict_batch(X_val))
        logger.info(
            f"{asset}/{timeframe} train_mse={train_stats['train_mse']:.6e} "
            f"val mae={metrics.mae:.6e} rmse={metrics.rmse:.6e} "
            f"directional_accuracy={metrics.directional_accuracy:.3f}"
        )

        trained = TrainedModel(
            run_id=make_artifact_id(asset, timeframe),
            asset=asset,
            timeframe=timeframe,
            trained_at=utc_now_iso(),
            feature_schema=tuple(FEATURE_SCHEMA),
            means=params.means,
            std_devs=params.std_devs,
            weights=tuple(float(w) for w in model.weights),
            bias=model.bias,
            metrics=metrics,
        )
        model_path = self.model_store.save(trained)

        return TrainResult(
            run_id=trained.run_id,
            asset=asset,
            timeframe=timeframe,
            sample_count=len(dataset),
            split_index=split_index,
            feature_count=len(FEATURE_SCHEMA),
            metrics=metrics,
            model_path=model_path,
        )
