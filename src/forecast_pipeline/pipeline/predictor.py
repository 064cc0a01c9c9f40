"""Multi-step price forecasts from the latest persisted model."""

import logging
import numbers
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from ..data.candle_source import CandleSource
from ..exceptions import FeatureSchemaMismatchError, InvalidHorizonError
from ..features.feature_builder import FEATURE_SCHEMA, FeatureBuilder
from ..features.standardizer import StandardizationParams
from ..models.linear_model import LinearRegressionGD
from ..storage.model_store import ModelStore, PredictionArtifact
from ..utils.helpers import make_artifact_id, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionResult:
    """Summary returned to callers; ``model_run_id`` is the provenance link."""
    prediction_id: str
    asset: str
    horizon: int
    timeframe: str
    model_run_id: str
    generated_at: str
    predicted_one_step_return: float
    predicted_return: float
    latest_close: float
    predicted_close: float
    model_path: str
    prediction_path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compound_return(one_step_return: float, horizon: int) -> float:
    """Compound a stationary one-step return geometrically over ``horizon`` steps."""
    return (1 + one_step_return) ** horizon - 1


def validate_horizon(horizon: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(horizon, bool) or not isinstance(horizon, numbers.Integral) or horizon < 1:
        raise InvalidHorizonError(f"horizon must be an integer >= 1, got {horizon!r}")
    return int(horizon)


class Predictor:
    """Apply the newest model for an asset to its freshest candles."""

    def __init__(self, candle_source: CandleSource, model_store: ModelStore,
                 feature_builder: Optional[FeatureBuilder] = None):
        self.candle_source = candle_source
        self.model_store = model_store
        self.feature_builder = feature_builder or FeatureBuilder()

    def predict(self, asset: str, horizon: int) -> PredictionResult:
        horizon = validate_horizon(horizon)

        trained = self.model_store.latest(asset)
        if list(trained.feature_schema) != FEATURE_SCHEMA:
            raise FeatureSchemaMismatchError(
                f"Model {trained.run_id} uses schema {list(trained.feature_schema)}, "
                f"expected {FEATURE_SCHEMA}"
            )

        candles = self.candle_source.fetch_candles(asset, trained.timeframe)
        raw_features = self.feature_builder.build_latest_vector(candles)

        # Persisted params only; never refit at inference
        params = StandardizationParams(means=trained.means, std_devs=trained.std_devs)
        model = LinearRegressionGD.from_params(trained.weights, trained.bias)
        one_step = model.predict_one(params.transform(raw_features))

        predicted_return = compound_return(one_step, horizon)
        latest_close = candles[-1].close
        predicted_close = latest_close * (1 + predicted_return)

        artifact = PredictionArtifact(
            prediction_id=make_artifact_id(asset, f"h{horizon}"),
            generated_at=utc_now_iso(),
            asset=asset,
            horizon=horizon,
            timeframe=trained.timeframe,
            model_run_id=trained.run_id,
            predicted_one_step_return=one_step,
            predicted_return=predicted_return,
            latest_close=latest_close,
            predicted_close=predicted_close,
        )
        prediction_path = self.model_store.save(artifact)
        logger.info(
            f"{asset} h={horizon} via {trained.run_id}: "
            f"close {latest_close:.6g} -> {predicted_close:.6g} ({predicted_return:+.4%})"
        )

        return PredictionResult(
            prediction_id=artifact.prediction_id,
            asset=asset,
            horizon=horizon,
            timeframe=trained.timeframe,
            model_run_id=trained.run_id,
            generated_at=artifact.generated_at,
            predicted_one_step_return=one_step,
            predicted_return=predicted_return,
            latest_close=latest_close,
            predicted_close=predicted_close,
            model_path=self.model_store.model_location(trained.run_id),
            prediction_path=prediction_path,
        )
