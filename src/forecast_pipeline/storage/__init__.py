"""Artifact persistence for trained models and predictions."""

from .model_store import (
    ModelStore, FileModelStore, InMemoryModelStore,
    TrainedModel, PredictionArtifact,
)

__all__ = ['ModelStore', 'FileModelStore', 'InMemoryModelStore', 'TrainedModel', 'PredictionArtifact']
