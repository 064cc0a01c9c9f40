"""
Model Store

Persists trained models and predictions as immutable, append-only artifacts.

Keys are timestamp-prefixed (``<ms>_<asset>_<timeframe>`` for models,
``<ms>_<asset>_h<horizon>`` for predictions), so sorting keys
lexicographically orders them by creation time for a given asset.
``latest(asset)`` depends on that; any backing store must keep keys
timestamp-prefixed.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..exceptions import ArtifactExistsError, ModelStoreError, NoModelFoundError
from ..models.metrics import RegressionMetrics
from ..utils.config import MODEL_RUNS_DIR, PREDICTIONS_DIR
from ..utils.helpers import read_json, write_json_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainedModel:
    """A fitted linear model plus everything needed to reproduce its inputs."""
    run_id: str
    asset: str
    timeframe: str
    trained_at: str
    feature_schema: Tuple[str, ...]
    means: Tuple[float, ...]
    std_devs: Tuple[float, ...]
    weights: Tuple[float, ...]
    bias: float
    metrics: RegressionMetrics

    @property
    def key(self) -> str:
        return self.run_id

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for name in ('feature_schema', 'means', 'std_devs', 'weights'):
            data[name] = list(data[name])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainedModel':
        try:
            return cls(
                run_id=data['run_id'],
                asset=data['asset'],
                timeframe=data['timeframe'],
                trained_at=data['trained_at'],
                feature_schema=tuple(data['feature_schema']),
                means=tuple(float(v) for v in data['means']),
                std_devs=tuple(float(v) for v in data['std_devs']),
                weights=tuple(float(v) for v in data['weights']),
                bias=float(data['bias']),
                metrics=RegressionMetrics(**data['metrics']),
            )
        except (KeyError, TypeError) as e:
            raise ModelStoreError(f"Malformed model artifact: {e}") from e


@dataclass(frozen=True)
class PredictionArtifact:
    """A persisted forecast, linked to the model run that produced it."""
    prediction_id: str
    generated_at: str
    asset: str
    horizon: int
    timeframe: str
    model_run_id: str
    predicted_one_step_return: float
    predicted_return: float
    latest_close: float
    predicted_close: float

    @property
    def key(self) -> str:
        return self.prediction_id

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PredictionArtifact':
        try:
            return cls(**data)
        except TypeError as e:
            raise ModelStoreError(f"Malformed prediction artifact: {e}") from e


Artifact = Union[TrainedModel, PredictionArtifact]


def _matching_keys(keys, asset: str) -> List[str]:
    marker = f"_{asset}_"
    return sorted(k for k in keys if marker in k)


def check_key(key: str) -> str:
    """Reject keys that cannot be a single flat file name."""
    separators = [s for s in (os.sep, os.altsep, "/") if s]
    if not key or key.startswith(".") or ".." in key or any(s in key for s in separators):
        raise ModelStoreError(
            f"Invalid artifact key {key!r}: asset and timeframe must not contain path separators or '..'"
        )
    return key


class ModelStore(ABC):
    """Persistence boundary for models and predictions."""

    @abstractmethod
    def save(self, artifact: Artifact) -> str:
        """
        Persist an artifact under its key.

        Returns:
            Location of the written artifact

        Raises:
            ArtifactExistsError: an artifact with the same key already exists
        """
        pass

    @abstractmethod
    def list_keys(self, asset: str) -> List[str]:
        """Model keys for ``asset``, ascending (oldest first)."""
        pass

    @abstractmethod
    def load(self, key: str) -> TrainedModel:
        pass

    @abstractmethod
    def list_predictions(self, asset: str) -> List[str]:
        """Prediction keys for ``asset``, ascending (oldest first)."""
        pass

    @abstractmethod
    def load_prediction(self, key: str) -> PredictionArtifact:
        pass

    @abstractmethod
    def model_location(self, key: str) -> str:
        """Where the model with ``key`` is (or would be) stored."""
        pass

    def latest(self, asset: str) -> TrainedModel:
        """Most recently saved model for ``asset``."""
        keys = self.list_keys(asset)
        if not keys:
            raise NoModelFoundError(
                f"No trained model runs found for asset {asset}. Run train_model first."
            )
        return self.load(keys[-1])


class FileModelStore(ModelStore):
    """JSON files on disk, one per artifact, written atomically."""

    def __init__(self, model_runs_dir: Optional[Path] = None,
                 predictions_dir: Optional[Path] = None):
        self.model_runs_dir = Path(model_runs_dir) if model_runs_dir is not None else MODEL_RUNS_DIR
        self.predictions_dir = Path(predictions_dir) if predictions_dir is not None else PREDICTIONS_DIR

    @classmethod
    def at(cls, root: Path) -> 'FileModelStore':
        """Store with ``model_runs/`` and ``predictions/`` under one root."""
        root = Path(root)
        return cls(root / "model_runs", root / "predictions")

    def _dir_for(self, artifact: Artifact) -> Path:
        if isinstance(artifact, TrainedModel):
            return self.model_runs_dir
        if isinstance(artifact, PredictionArtifact):
            return self.predictions_dir
        raise TypeError(f"Unsupported artifact type: {type(artifact).__name__}")

    @staticmethod
    def _keys_in(directory: Path) -> List[str]:
        if not directory.exists():
            return []
        # Temp files from in-flight writes are dot-prefixed and end in .tmp
        return [p.stem for p in directory.glob("*.json") if not p.name.startswith('.')]

    def save(self, artifact: Artifact) -> str:
        path = self._dir_for(artifact) / f"{check_key(artifact.key)}.json"
        try:
            write_json_atomic(path, artifact.to_dict(), overwrite=False)
        except FileExistsError:
            raise ArtifactExistsError(f"Artifact already exists: {path}") from None
        logger.info(f"Saved {type(artifact).__name__} {artifact.key} to {path}")
        return str(path)

    def list_keys(self, asset: str) -> List[str]:
        return _matching_keys(self._keys_in(self.model_runs_dir), asset)

    def load(self, key: str) -> TrainedModel:
        return TrainedModel.from_dict(read_json(self.model_runs_dir / f"{check_key(key)}.json"))

    def list_predictions(self, asset: str) -> List[str]:
        return _matching_keys(self._keys_in(self.predictions_dir), asset)

    def load_prediction(self, key: str) -> PredictionArtifact:
        return PredictionArtifact.from_dict(read_json(self.predictions_dir / f"{check_key(key)}.json"))

    def model_location(self, key: str) -> str:
        return str(self.model_runs_dir / f"{key}.json")


class InMemoryModelStore(ModelStore):
    """Process-local store; artifacts are kept as serialized dicts."""

    def __init__(self):
        self._models: Dict[str, Dict[str, Any]] = {}
        self._predictions: Dict[str, Dict[str, Any]] = {}

    def save(self, artifact: Artifact) -> str:
        if isinstance(artifact, TrainedModel):
            bucket, prefix = self._models, "model_runs"
        elif isinstance(artifact, PredictionArtifact):
            bucket, prefix = self._predictions, "predictions"
        else:
            raise TypeError(f"Unsupported artifact type: {type(artifact).__name__}")

        if check_key(artifact.key) in bucket:
            raise ArtifactExistsError(f"Artifact already exists: {artifact.key}")
        bucket[artifact.key] = artifact.to_dict()
        return f"memory://{prefix}/{artifact.key}"

    def list_keys(self, asset: str) -> List[str]:
        return _matching_keys(self._models, asset)

    def load(self, key: str) -> TrainedModel:
        try:
            return TrainedModel.from_dict(self._models[key])
        except KeyError:
            raise ModelStoreError(f"Model not found: {key}") from None

    def list_predictions(self, asset: str) -> List[str]:
        return _matching_keys(self._predictions, asset)

    def load_prediction(self, key: str) -> PredictionArtifact:
        try:
            return PredictionArtifact.from_dict(self._predictions[key])
        except KeyError:
            raise ModelStoreError(f"Prediction not found: {key}") from None

    def model_location(self, key: str) -> str:
        return f"memory://model_runs/{key}"
